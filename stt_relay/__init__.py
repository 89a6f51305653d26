"""
STT Relay Server Package.

A small HTTP relay that forwards uploaded audio to Google Cloud
Speech-to-Text and returns the transcript as JSON.
"""

from pathlib import Path


def _get_version() -> str:
    """
    Get the relay version from package metadata or pyproject.toml.

    Returns:
        Version string (e.g., "0.1.0") or "dev" if unavailable
    """
    # First try importlib.metadata (works when package is installed)
    try:
        from importlib.metadata import version

        return version("stt-relay")
    except Exception:
        pass

    # Fallback: read from pyproject.toml
    try:
        import tomllib

        current = Path(__file__).resolve()
        for parent in current.parents:
            potential_path = parent / "pyproject.toml"
            if potential_path.exists():
                with open(potential_path, "rb") as f:
                    data = tomllib.load(f)
                return data.get("project", {}).get("version", "dev")
    except Exception:
        pass

    return "dev"


__version__ = _get_version()
