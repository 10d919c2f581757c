"""
skills_manager: keep one global directory of agent skills and distribute it to the
skills directories of many agent applications with symlinks.

The reconciliation engine lives in the submodules:
- scanner / classifier / state: derive what is installed where, and how
- mutations: link, unlink, delete-local, upload-to-global and batch wrappers
- server: FastMCP stdio server and CLI on top of the engine
"""

__version__: str = "0.1.0"


def version() -> str:
    return __version__


__all__: list[str] = ["__version__", "version"]
