from .registry import Template, TemplateRegistry, Version, VersionBump

__all__ = [
    "Template",
    "TemplateRegistry",
    "Version",
    "VersionBump",
]
