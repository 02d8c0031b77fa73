"""
Version information for the GiftBox SDK.
"""
import importlib.metadata
import pathlib

import tomli

try:
    __version__ = importlib.metadata.version("giftbox-sdk")
except importlib.metadata.PackageNotFoundError:
    # Source checkout: read the version straight from pyproject.toml
    try:
        path = pathlib.Path(__file__).parent.parent / "pyproject.toml"
        with path.open("rb") as f:
            data = tomli.load(f)
        __version__ = data["project"]["version"]
    except (FileNotFoundError, KeyError):
        __version__ = "0.1.0"
