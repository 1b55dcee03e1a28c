"""
Exception types for template loading, rendering and packaging.
"""


class ConfigurationError(Exception):
	"""
	Raised before a run starts: missing or unreadable template, empty dataset.
	"""


class RowRenderError(Exception):
	"""
	Raised while rendering a single row. The pipeline records it and moves on.
	"""


class FontResolutionError(RowRenderError):
	pass


class EncodingError(RowRenderError):
	pass


class TemplateRenderError(RowRenderError):
	pass


class PackagingError(Exception):
	"""
	Raised when the archive cannot be assembled.
	"""


class LayoutLockedError(Exception):
	pass


class PipelineStateError(Exception):
	pass
