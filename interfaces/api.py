import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import List, Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from application.config import InstallerConfig
from application.install_tool_package import InstallToolPackage
from domain.asset_manifest import AssetManifest
from domain.errors import PackageFetchError, PackageMetadataError, ToolPackageConflictError
from domain.package_fetcher import PackageLocation
from domain.package_identity import PackageId, VersionRange, parse_version
from infrastructure.file_system_tool_package_store import FileSystemToolPackageStore

logger = logging.getLogger(__name__)


class Config:
    def __init__(
        self,
        installer: InstallerConfig,
        feeds: Optional[List[str]] = None,
        nuget_config: Optional[str] = None
    ):
        self.installer = installer
        self.feeds = feeds or []
        self.nuget_config = nuget_config


class InstallRequestDTO(BaseModel):
    package_id: str = Field(..., description="Id of the tool package")
    version_range: Optional[str] = Field(None, description="NuGet version range; omit for the latest stable version")
    global_tool: bool = Field(True, description="Install into the shared store instead of a local directory")
    feeds: List[str] = Field(default_factory=list, description="Additional package sources")


class InstalledPackageDTO(BaseModel):
    package_id: str
    version: str
    package_directory: str
    assets_json_parent_directory: str
    tools_assemblies: List[str]


config: Optional[Config] = None
store: Optional[FileSystemToolPackageStore] = None
installer: Optional[InstallToolPackage] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    global store, installer
    if config:
        store = FileSystemToolPackageStore(config.installer.store_dir)
        installer = InstallToolPackage(store, config.installer)
    yield


app = FastAPI(
    title="Tool Package Installer",
    description="Installs tool packages and their asset manifests",
    version="1.0.0",
    lifespan=lifespan
)


@app.post("/v1/tools/install", response_model=InstalledPackageDTO)
def install_tool(request: InstallRequestDTO):
    """
    Install a tool package.

    This endpoint:
    1. Resolves the package in the configured and requested feeds
    2. Downloads, verifies and extracts it
    3. Writes the asset manifest for the configured framework and runtime
    """
    if not config or not installer:
        raise HTTPException(status_code=500, detail="Server not properly configured")

    try:
        package_id = PackageId(request.package_id)
        version_range = VersionRange.parse(request.version_range)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    location = PackageLocation(
        nuget_config=Path(config.nuget_config) if config.nuget_config else None,
        additional_feeds=list(config.feeds) + list(request.feeds),
    )

    try:
        package = installer.install(location, package_id, version_range, is_global_tool=request.global_tool)
        return InstalledPackageDTO(
            package_id=str(package.package_id),
            version=str(package.version),
            package_directory=str(package.package_directory),
            assets_json_parent_directory=str(package.assets_json_parent_directory),
            tools_assemblies=package.tools_assemblies,
        )
    except PackageFetchError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ToolPackageConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except PackageMetadataError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception("Installing %s failed", request.package_id)
        raise HTTPException(status_code=500, detail=f"Internal server error: {str(e)}")


@app.get("/v1/tools/{package_id}/{version}/manifest")
def get_manifest(package_id: str, version: str):
    """Return the asset manifest of a globally installed package."""
    if not store:
        raise HTTPException(status_code=500, detail="Server not properly configured")

    try:
        package_directory = store.get_package_directory(PackageId(package_id), parse_version(version))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    try:
        manifest = AssetManifest.read(package_directory)
    except FileNotFoundError:
        raise HTTPException(status_code=404, detail="Package not installed")

    return manifest.to_dict()


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


def initialize_app(
    installer_config: InstallerConfig,
    feeds: Optional[List[str]] = None,
    nuget_config: Optional[str] = None
):
    """Initialize the FastAPI application with configuration."""
    global config

    config = Config(
        installer=installer_config,
        feeds=feeds,
        nuget_config=nuget_config
    )

    # Create store directory if it doesn't exist
    installer_config.store_dir.mkdir(parents=True, exist_ok=True)

    return app
