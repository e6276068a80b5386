"""Pydantic models for supervisor API responses."""
from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class _SupervisorModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")


class DeviceInfo(_SupervisorModel):
    device_type: str = Field(alias="deviceType")
    arch: str


class ContainerStatus(_SupervisorModel):
    status: str
    service_name: str = Field(alias="serviceName")
    app_id: int = Field(alias="appId")
    image_id: int = Field(alias="imageId")
    service_id: int = Field(alias="serviceId")
    container_id: str = Field(alias="containerId")
    created_at: str = Field(alias="createdAt")


class ImageStatus(_SupervisorModel):
    name: str
    app_id: int = Field(alias="appId")
    service_name: str = Field(alias="serviceName")
    image_id: int = Field(alias="imageId")
    docker_image_id: Optional[str] = Field(default=None, alias="dockerImageId")
    status: str
    download_progress: Optional[float] = Field(default=None, alias="downloadProgress")


class DeviceStatus(_SupervisorModel):
    """Snapshot of what the supervisor is running and downloading."""

    app_state: Literal["applied", "applying"] = Field(alias="appState")
    overall_download_progress: Optional[float] = Field(
        default=None, alias="overallDownloadProgress"
    )
    containers: list[ContainerStatus] = Field(default_factory=list)
    images: list[ImageStatus] = Field(default_factory=list)
