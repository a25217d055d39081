"""Configuration objects for the infrastructure layer."""

from __future__ import annotations

import os
from decimal import Decimal
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..domain.pricing import AddOnRates

_TRUE_VALUES = {"1", "true", "yes", "on"}


class EngineConfig(BaseModel):
    """Strongly-typed settings for building a RentalEngine.

    Environment variables (all optional):
        RENTAL_CMS_URL, RENTAL_UPSTREAM_TIMEOUT, RENTAL_GATEWAY_TIMEOUT,
        RENTAL_PERMISSIVE_AVAILABILITY, RENTAL_LOG_LEVEL, RENTAL_DRIVER_RATE,
        RENTAL_CHILD_SEAT_RATE, RENTAL_GPS_RATE, RENTAL_DEFAULT_DAILY_PRICE
    """

    model_config = ConfigDict(
        extra="forbid",
        str_strip_whitespace=True,
        validate_assignment=True,
    )

    cms_base_url: str = Field(
        default="http://localhost:1337/api",
        description="Base URL of the content service REST API",
    )
    pricing: AddOnRates = Field(default_factory=AddOnRates)
    default_daily_price: Decimal = Field(
        default=Decimal("100"),
        gt=0,
        description="Daily price used when the catalog has none for a car",
    )
    upstream_timeout_seconds: float = Field(default=10.0, gt=0)
    gateway_timeout_seconds: float = Field(default=30.0, gt=0)
    permissive_availability_reads: bool = Field(
        default=True,
        description="Treat a failed availability lookup as 'available' (logged)",
    )
    log_level: str = Field(default="INFO")

    @field_validator("cms_base_url")
    @classmethod
    def validate_cms_base_url(cls, v: str) -> str:
        """Validate URL scheme and drop the trailing slash."""
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"Invalid CMS URL: {v}. Must start with http:// or https://")
        return v.rstrip("/")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Invalid log level: {v}")
        return level

    @classmethod
    def from_env(cls, env_file: str | Path | None = None) -> EngineConfig:
        """Build a config from ``RENTAL_*`` variables, after loading ``env_file``."""
        if env_file is not None:
            load_dotenv(env_file, override=False)
        else:
            load_dotenv(override=False)

        values: dict[str, Any] = {}
        env = os.environ

        if "RENTAL_CMS_URL" in env:
            values["cms_base_url"] = env["RENTAL_CMS_URL"]
        if "RENTAL_UPSTREAM_TIMEOUT" in env:
            values["upstream_timeout_seconds"] = float(env["RENTAL_UPSTREAM_TIMEOUT"])
        if "RENTAL_GATEWAY_TIMEOUT" in env:
            values["gateway_timeout_seconds"] = float(env["RENTAL_GATEWAY_TIMEOUT"])
        if "RENTAL_PERMISSIVE_AVAILABILITY" in env:
            values["permissive_availability_reads"] = (
                env["RENTAL_PERMISSIVE_AVAILABILITY"].strip().lower() in _TRUE_VALUES
            )
        if "RENTAL_LOG_LEVEL" in env:
            values["log_level"] = env["RENTAL_LOG_LEVEL"]
        if "RENTAL_DEFAULT_DAILY_PRICE" in env:
            values["default_daily_price"] = Decimal(env["RENTAL_DEFAULT_DAILY_PRICE"])

        rates: dict[str, Decimal] = {}
        for var, field in (
            ("RENTAL_DRIVER_RATE", "driver_per_day"),
            ("RENTAL_CHILD_SEAT_RATE", "child_seat_per_day"),
            ("RENTAL_GPS_RATE", "gps_per_day"),
        ):
            if var in env:
                rates[field] = Decimal(env[var])
        if rates:
            values["pricing"] = AddOnRates(**rates)

        return cls(**values)
