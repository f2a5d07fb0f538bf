# site_errors.py
"""
Error types raised while turning a Markdown document into a served page.

Every error aborts the transformation of the current document. Callers that
process many documents (site_index.SiteIndex.refresh) catch LightsiteError per
document, report it and carry on with the rest.
"""
from __future__ import annotations


class LightsiteError(Exception):
    """Base class for all document processing errors."""


class MissingTitleAttribute(LightsiteError):
    def __init__(self) -> None:
        super().__init__(
            'document does not contain mandatory <attributes title="Your Document Title"></attributes> attribute'
        )


class MissingTemplateFile(LightsiteError):
    def __init__(self) -> None:
        super().__init__("must specify template HTML attribute file, none was specified")


class TemplateFileReadError(LightsiteError):
    def __init__(self, file_name: str, reason: str) -> None:
        super().__init__(f"failed to read template file {file_name}: {reason}")
        self.file_name = file_name


class TemplateParseError(LightsiteError):
    def __init__(self, file_name: str, reason: str) -> None:
        super().__init__(f"failed to parse template html for {file_name}: {reason}")
        self.file_name = file_name


class InvalidTemplateOutput(LightsiteError):
    def __init__(self, file_name: str) -> None:
        super().__init__(
            f"unable to identify rendered template body or parent node for template {file_name}"
        )
        self.file_name = file_name


class DirectoryNotInitialized(LightsiteError):
    def __init__(self) -> None:
        super().__init__("document directory not initialized")


class NoParentForTableNode(LightsiteError):
    def __init__(self) -> None:
        super().__init__("cannot find parent for table node")


class HTMLParseError(LightsiteError):
    def __init__(self, reason: str) -> None:
        super().__init__(f"failed to parse html: {reason}")


class HTMLRenderError(LightsiteError):
    def __init__(self, reason: str) -> None:
        super().__init__(f"failed to render html: {reason}")


class DocumentReadError(LightsiteError):
    def __init__(self, file_name: str, reason: str) -> None:
        super().__init__(f"failed to read file {file_name}: {reason}")
        self.file_name = file_name
