"""HTTP interface for master identifiers and public projections."""

from fastapi import Depends, FastAPI, Header, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, StrictBool

from qr_vault.config import QrVaultConfig
from qr_vault.exceptions import (
    NOT_ACCESSIBLE,
    ConflictError,
    EntityNotFoundError,
    ForbiddenError,
    ValidationError,
)
from qr_vault.logging import get_logger, setup_logging
from qr_vault.models import AssetType, OwnerSession
from qr_vault.service import IdentifierService, build_service
from qr_vault.sinks.serialization import serialize_value

logger = get_logger(__name__)


# Pydantic request models
class PrivacySettingsPatch(BaseModel):
    model_config = ConfigDict(extra="forbid")

    showFullAddress: StrictBool | None = None
    showContractors: StrictBool | None = None
    showDocuments: StrictBool | None = None
    showCosts: StrictBool | None = None


class IdentifierRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    privacySettings: PrivacySettingsPatch | None = None
    regenerate: StrictBool = False


class ClassificationRequest(BaseModel):
    assetType: AssetType


def owner_session(x_account_id: str | None = Header(default=None)) -> OwnerSession | None:
    """Session asserted by the upstream auth layer."""
    return OwnerSession(account_id=x_account_id) if x_account_id else None


def create_app(service: IdentifierService) -> FastAPI:
    """Build the application around an already wired service."""
    app = FastAPI(title="QR Vault API")
    app.state.service = service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(EntityNotFoundError)
    async def not_found(request: Request, exc: EntityNotFoundError) -> JSONResponse:
        # Same body whatever the cause, so tokens cannot be enumerated
        return JSONResponse(status_code=404, content={"error": NOT_ACCESSIBLE})

    @app.exception_handler(ForbiddenError)
    async def forbidden(request: Request, exc: ForbiddenError) -> JSONResponse:
        return JSONResponse(status_code=403, content={"error": "Forbidden"})

    @app.exception_handler(ConflictError)
    async def conflict(request: Request, exc: ConflictError) -> JSONResponse:
        return JSONResponse(status_code=409, content={"error": str(exc), "revoked": exc.revoked})

    @app.exception_handler(ValidationError)
    async def invalid(request: Request, exc: ValidationError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"error": str(exc)})

    @app.exception_handler(RequestValidationError)
    async def invalid_request(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content={"error": "Invalid request", "detail": jsonable_encoder(exc.errors())},
        )

    @app.get("/")
    def read_root():
        return {"message": "QR Vault API running"}

    # Owner routes
    @app.get("/identifier/{property_id}")
    def get_identifier(property_id: str, session: OwnerSession | None = Depends(owner_session)):
        return service.get_identifier(property_id, session).to_dict()

    @app.post("/identifier/{property_id}")
    def post_identifier(
        property_id: str,
        payload: IdentifierRequest,
        session: OwnerSession | None = Depends(owner_session),
    ):
        settings = (
            payload.privacySettings.model_dump(exclude_none=True)
            if payload.privacySettings is not None
            else None
        )
        status = service.submit(property_id, session, settings, regenerate=payload.regenerate)
        return status.to_dict()

    @app.post("/identifier/{property_id}/revoke")
    def revoke_identifier(property_id: str, session: OwnerSession | None = Depends(owner_session)):
        service.revoke(property_id, session)
        return {"success": True}

    @app.get("/property/{property_id}")
    def owner_property(property_id: str, session: OwnerSession | None = Depends(owner_session)):
        return service.owner_property(property_id, session).to_dict()

    @app.put("/asset/{asset_id}/classification")
    def classify_asset(
        asset_id: str,
        payload: ClassificationRequest,
        session: OwnerSession | None = Depends(owner_session),
    ):
        asset = service.reclassify_asset(asset_id, session, payload.assetType)
        return {"id": asset.asset_id, "assetType": serialize_value(asset.asset_type)}

    # Public routes
    @app.get("/public/property/{token}")
    def public_property(token: str):
        return service.public_property(token).to_dict()

    @app.get("/public/asset/{asset_id}")
    def public_asset(asset_id: str, token: str | None = None):
        return service.public_asset(asset_id, token).to_dict()

    return app


def main() -> None:
    """Run the API with configuration from the environment."""
    import uvicorn

    config = QrVaultConfig.from_env()
    setup_logging(config.log_level, config.log_format)
    app = create_app(build_service(config))
    uvicorn.run(app, host=config.server.host, port=config.server.port)


if __name__ == "__main__":
    main()
