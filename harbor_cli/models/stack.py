"""Stack profile and artifact models."""

from pathlib import Path

from pydantic import BaseModel, ConfigDict, field_validator

from .enums import ArtifactKind, StackKind


class StackProfile(BaseModel):
    """Classification of a project plus the parameters its templates need."""

    model_config = ConfigDict(frozen=True)

    kind: StackKind
    port: str
    entrypoint: str

    @field_validator("port", mode="before")
    @classmethod
    def parse_port(cls, v: str | int) -> str:
        """Normalize the port to a numeric string in 1-65535."""
        v = str(v).strip()
        if not v:
            raise ValueError("Port number cannot be empty")
        if not v.isdigit():
            raise ValueError(f"Invalid port number: '{v}' (must be numeric)")
        port = int(v)
        if not (1 <= port <= 65535):
            raise ValueError(f"Port {port} out of valid range 1-65535")
        return str(port)

    @field_validator("entrypoint")
    @classmethod
    def require_entrypoint(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Entrypoint cannot be empty")
        if '"' in v or "\n" in v:
            raise ValueError("Entrypoint cannot contain quotes or newlines")
        return v


class Artifact(BaseModel):
    """A generated file, as rendered and as found on disk."""

    kind: ArtifactKind
    path: Path
    content: str = ""
    exists: bool = False
