"""
Coordinate mapping between design space, the preview surface and the page.

Design space and the preview share a top-left origin. Page space follows
PDF convention with the origin at the bottom-left.
"""

# Standard Library
import dataclasses

# local repo modules
import certificate_forge as cforge
import certificate_forge.config


DESIGN_WIDTH = cforge.config.DESIGN_WIDTH
DEFAULT_DESIGN_HEIGHT = cforge.config.DEFAULT_DESIGN_HEIGHT


@dataclasses.dataclass(frozen=True)
class DesignSpace:
	width: float = DESIGN_WIDTH
	height: float = DEFAULT_DESIGN_HEIGHT

	@classmethod
	def for_page(cls, page_width: float, page_height: float, width: float = DESIGN_WIDTH) -> "DesignSpace":
		"""
		Build a design space whose aspect ratio matches a template page.

		Args:
			page_width: Template width in pixels or points.
			page_height: Template height in pixels or points.
			width: Fixed design width.

		Returns:
			DesignSpace.
		"""
		if page_width <= 0 or page_height <= 0:
			raise ValueError(f"Invalid page size: {page_width} x {page_height}")
		return cls(width=width, height=width * page_height / page_width)


#============================================
def preview_scale(rendered_width: float, space: DesignSpace) -> float:
	"""
	Scale factor from design units to preview pixels.

	Stroke widths, font sizes and hit radii drawn on the preview are all
	multiplied by this value.
	"""
	if rendered_width <= 0:
		raise ValueError(f"Invalid preview width: {rendered_width}")
	return rendered_width / space.width


#============================================
def to_preview_pixels(point: tuple[float, float], scale: float) -> tuple[float, float]:
	return (point[0] * scale, point[1] * scale)


#============================================
def from_preview_pixels(pixel: tuple[float, float], scale: float) -> tuple[float, float]:
	if scale <= 0:
		raise ValueError(f"Invalid preview scale: {scale}")
	return (pixel[0] / scale, pixel[1] / scale)


#============================================
def document_scale(page_width: float, page_height: float, space: DesignSpace) -> tuple[float, float]:
	"""
	Compute the design-to-page scale factors.

	The vertical factor uses the design space height, which carries the
	aspect ratio the layout was made against, not the page aspect ratio.

	Args:
		page_width: Page width in points.
		page_height: Page height in points.
		space: Design space of the layout.

	Returns:
		Tuple of (scale_x, scale_y).
	"""
	scale_x = page_width / space.width
	scale_y = page_height / space.height
	return (scale_x, scale_y)


#============================================
def to_document_points(
	point: tuple[float, float],
	page_width: float,
	page_height: float,
	space: DesignSpace,
) -> tuple[float, float]:
	"""
	Map a design point onto the page.

	Args:
		point: Design space (x, y).
		page_width: Page width in points.
		page_height: Page height in points.
		space: Design space of the layout.

	Returns:
		Page space (x, y) with a bottom-left origin.
	"""
	scale_x, scale_y = document_scale(page_width, page_height, space)
	return (point[0] * scale_x, page_height - point[1] * scale_y)


#============================================
def from_document_points(
	point: tuple[float, float],
	page_width: float,
	page_height: float,
	space: DesignSpace,
) -> tuple[float, float]:
	scale_x, scale_y = document_scale(page_width, page_height, space)
	return (point[0] / scale_x, (page_height - point[1]) / scale_y)


#============================================
def clamp_to_design(point: tuple[float, float], space: DesignSpace) -> tuple[float, float]:
	x = min(max(point[0], 0.0), space.width)
	y = min(max(point[1], 0.0), space.height)
	return (x, y)
