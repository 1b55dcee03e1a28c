"""
Raster preview of a layout over its template.

The base image is the composited document itself, rasterized at preview
size, so text in the preview uses the same fonts and metrics as the
output. Only the editing affordances are drawn on top with Pillow.
"""

# Standard Library
import io

# PIP3 modules
import fitz
import PIL.Image
import PIL.ImageDraw
import PIL.ImageFont

# local repo modules
import certificate_forge as cforge
import certificate_forge.config
import certificate_forge.fonts
import certificate_forge.layout
import certificate_forge.placement
import certificate_forge.render
import certificate_forge.template
import certificate_forge.transform


LayoutModel = cforge.layout.LayoutModel
Template = cforge.template.Template
DesignSpace = cforge.transform.DesignSpace
FontCache = cforge.fonts.FontCache
HitTarget = cforge.placement.HitTarget

MARK_SIZE = cforge.config.MARK_SIZE
PREVIEW_STROKE_WIDTH = cforge.config.PREVIEW_STROKE_WIDTH
PREVIEW_MARK_COLOR = cforge.config.PREVIEW_MARK_COLOR
PREVIEW_MARK_CAPTION_SIZE = cforge.config.PREVIEW_MARK_CAPTION_SIZE
PREVIEW_HOVER_COLOR = cforge.config.PREVIEW_HOVER_COLOR
PREVIEW_EMPTY_BACKGROUND = cforge.config.PREVIEW_EMPTY_BACKGROUND
HIT_PADDING = cforge.config.HIT_PADDING


#============================================
def rgb_255(value: str) -> tuple[int, int, int]:
	red, green, blue = cforge.layout.parse_hex_color(value)
	return (int(round(red * 255)), int(round(green * 255)), int(round(blue * 255)))


#============================================
def blank_template(space: DesignSpace) -> Template:
	"""
	Build a solid image template the size of the design space.
	"""
	size = (max(1, int(round(space.width))), max(1, int(round(space.height))))
	image = PIL.Image.new("RGB", size, rgb_255(PREVIEW_EMPTY_BACKGROUND))
	buffer = io.BytesIO()
	image.save(buffer, format="PNG")
	return cforge.template.load_template(buffer.getvalue(), "image/png")


#============================================
def rasterize_document(document: bytes, width: int, height: int) -> PIL.Image.Image:
	"""
	Rasterize the first page of a PDF at preview size.

	Args:
		document: PDF bytes.
		width: Preview width in pixels.
		height: Preview height in pixels.

	Returns:
		RGB image.
	"""
	pdf = fitz.open(stream=document, filetype="pdf")
	page = pdf[0]
	zoom = width / page.rect.width
	pixmap = page.get_pixmap(matrix=fitz.Matrix(zoom, zoom), alpha=False)
	image = PIL.Image.frombytes("RGB", [pixmap.width, pixmap.height], pixmap.samples)
	pdf.close()
	if image.size != (width, height):
		image = image.resize((width, height), PIL.Image.Resampling.LANCZOS)
	return image


#============================================
def compose_preview_document(
	layout: LayoutModel,
	space: DesignSpace,
	template: Template,
	font_cache: FontCache,
	sample_row: dict | None = None,
	mapping: dict[str, str] | None = None,
) -> bytes:
	"""
	Render the layout's text onto the template as the output would.

	Each enabled field shows its sample value, or its bracketed label when
	there is none. The verification mark is left out; the preview draws a
	placeholder for it instead.

	Args:
		layout: Layout model.
		space: Design space.
		template: Loaded template.
		font_cache: Font cache used for text.
		sample_row: Optional row whose values replace the field labels.
		mapping: Field key to column mapping for the sample row.

	Returns:
		PDF bytes.
	"""
	row = {}
	for field in layout.enabled_fields():
		row[field.key] = cforge.placement.display_text(field, sample_row, mapping)
	field_mapping = {key: key for key in row}
	text_layout = cforge.layout.set_mark_enabled(layout, False)
	return cforge.render.render_certificate(
		template,
		text_layout,
		row,
		field_mapping,
		space=space,
		font_cache=font_cache,
	)


#============================================
def render_preview(
	layout: LayoutModel,
	space: DesignSpace,
	preview_width: int,
	template: Template | None = None,
	font_cache: FontCache | None = None,
	hover: HitTarget | None = None,
	sample_row: dict | None = None,
	mapping: dict[str, str] | None = None,
	mark_size: float = MARK_SIZE,
) -> PIL.Image.Image:
	"""
	Draw the editing preview.

	Every size drawn here is a design size times the preview scale, so the
	preview keeps the same proportions as the rendered documents.

	Args:
		layout: Layout model.
		space: Design space.
		preview_width: Preview width in pixels.
		template: Loaded template, or None for an empty canvas.
		font_cache: Font cache used for text metrics.
		hover: Element to highlight.
		sample_row: Optional row whose values replace the field labels.
		mapping: Field key to column mapping for the sample row.
		mark_size: Verification mark square size.

	Returns:
		RGB preview image.
	"""
	if font_cache is None:
		font_cache = FontCache()
	if template is None:
		template = blank_template(space)
	scale = cforge.transform.preview_scale(preview_width, space)
	width = int(round(space.width * scale))
	height = int(round(space.height * scale))
	document = compose_preview_document(layout, space, template, font_cache, sample_row, mapping)
	image = rasterize_document(document, width, height)
	draw = PIL.ImageDraw.Draw(image)
	stroke = max(1, int(round(PREVIEW_STROKE_WIDTH * scale)))

	if hover is not None and hover.kind == "field":
		field = layout.get_field(hover.key)
		if field is not None and field.enabled:
			text = cforge.placement.display_text(field, sample_row, mapping)
			box = cforge.placement.field_footprint(field, text, font_cache, HIT_PADDING)
			draw.rectangle(
				[box[0] * scale, box[1] * scale, box[2] * scale, box[3] * scale],
				outline=rgb_255(PREVIEW_HOVER_COLOR),
				width=stroke,
			)

	if layout.mark.enabled:
		size = mark_size * scale
		center_x, center_y = cforge.transform.to_preview_pixels((layout.mark.x, layout.mark.y), scale)
		mark_width = stroke * 2 if hover == cforge.placement.MARK_TARGET else stroke
		draw.rectangle(
			[center_x - size / 2.0, center_y - size / 2.0, center_x + size / 2.0, center_y + size / 2.0],
			outline=rgb_255(PREVIEW_MARK_COLOR),
			width=mark_width,
		)
		caption_font = PIL.ImageFont.load_default(size=max(1, int(round(PREVIEW_MARK_CAPTION_SIZE * scale))))
		draw.text(
			(center_x, center_y),
			"QR",
			fill=rgb_255(PREVIEW_MARK_COLOR),
			font=caption_font,
			anchor="mm",
		)
	return image
