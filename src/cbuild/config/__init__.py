"""Build script loading."""

from .build_script import Action, BuildOptions, BuildScriptAPI, load_build_script

__all__ = [
    "Action",
    "BuildOptions",
    "BuildScriptAPI",
    "load_build_script",
]
