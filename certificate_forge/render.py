"""
Compositing of one dataset row onto the template.
"""

# Standard Library
import dataclasses
import io

# PIP3 modules
import pypdf
import reportlab.lib.utils
import reportlab.pdfgen.canvas

# local repo modules
import certificate_forge as cforge
import certificate_forge.config
import certificate_forge.errors
import certificate_forge.fonts
import certificate_forge.layout
import certificate_forge.template
import certificate_forge.transform
import certificate_forge.verification


LayoutModel = cforge.layout.LayoutModel
Template = cforge.template.Template
DesignSpace = cforge.transform.DesignSpace
FontCache = cforge.fonts.FontCache
RowRenderError = cforge.errors.RowRenderError
TemplateRenderError = cforge.errors.TemplateRenderError

MARK_SIZE = cforge.config.MARK_SIZE
DESIGN_WIDTH = cforge.config.DESIGN_WIDTH
VERIFY_URL_TEMPLATE = cforge.config.VERIFY_URL_TEMPLATE


@dataclasses.dataclass(frozen=True)
class PlacedText:
	key: str
	text: str
	font_name: str
	font_size: float
	x: float
	y: float
	width: float
	color: tuple[float, float, float]


@dataclasses.dataclass(frozen=True)
class PlacedMark:
	identifier: str
	payload: str
	x: float
	y: float
	size: float


@dataclasses.dataclass
class CertificatePlan:
	page_width: float
	page_height: float
	texts: list[PlacedText]
	mark: PlacedMark | None = None


#============================================
def plan_certificate(
	page_size: tuple[float, float],
	layout: LayoutModel,
	row: dict,
	mapping: dict[str, str],
	row_index: int,
	space: DesignSpace,
	font_cache: FontCache,
	mark_size: float = MARK_SIZE,
	url_template: str = VERIFY_URL_TEMPLATE,
) -> CertificatePlan:
	"""
	Work out where every element of one row lands on the page.

	Args:
		page_size: Template (width, height) in points.
		layout: Layout model.
		row: Dataset row.
		mapping: Field key to column mapping.
		row_index: 0-based row index.
		space: Design space the layout was made in.
		font_cache: Font cache for this run.
		mark_size: Verification mark square size in design units.
		url_template: Verification URL template.

	Returns:
		CertificatePlan in page space.
	"""
	page_width, page_height = page_size
	scale_x, _scale_y = cforge.transform.document_scale(page_width, page_height, space)

	texts: list[PlacedText] = []
	for field in layout.fields:
		if not field.enabled:
			continue
		text = cforge.verification.cell_text(row, mapping.get(field.key))
		if not text.strip():
			continue
		choice = font_cache.resolve(field.font_family)
		font_size = field.font_size * scale_x
		width = font_cache.string_width(text, field.font_family, font_size)
		anchor_x, baseline_y = cforge.transform.to_document_points(
			(field.x, field.y),
			page_width,
			page_height,
			space,
		)
		texts.append(
			PlacedText(
				key=field.key,
				text=text,
				font_name=choice.font_name,
				font_size=font_size,
				x=anchor_x - width / 2.0,
				y=baseline_y,
				width=width,
				color=cforge.layout.parse_hex_color(field.color),
			)
		)

	mark = None
	if layout.mark.enabled:
		identifier = cforge.verification.row_identifier(row, mapping, row_index)
		center_x, center_y = cforge.transform.to_document_points(
			(layout.mark.x, layout.mark.y),
			page_width,
			page_height,
			space,
		)
		size = mark_size * scale_x
		mark = PlacedMark(
			identifier=identifier,
			payload=cforge.verification.verification_url(identifier, url_template),
			x=center_x - size / 2.0,
			y=center_y - size / 2.0,
			size=size,
		)
	return CertificatePlan(page_width=page_width, page_height=page_height, texts=texts, mark=mark)


#============================================
def draw_placed_text(pdf: reportlab.pdfgen.canvas.Canvas, placed: PlacedText) -> None:
	pdf.setFont(placed.font_name, placed.font_size)
	pdf.setFillColorRGB(placed.color[0], placed.color[1], placed.color[2])
	pdf.drawString(placed.x, placed.y, placed.text)


#============================================
def draw_placed_mark(pdf: reportlab.pdfgen.canvas.Canvas, placed: PlacedMark) -> None:
	"""
	Encode and draw the verification mark.

	Args:
		pdf: ReportLab canvas.
		placed: Mark placement.
	"""
	image = cforge.verification.encode_verification_image(placed.payload)
	pdf.drawImage(
		reportlab.lib.utils.ImageReader(image),
		placed.x,
		placed.y,
		width=placed.size,
		height=placed.size,
		mask=None,
		preserveAspectRatio=False,
		anchor="sw",
	)


#============================================
def draw_plan(
	plan: CertificatePlan,
	background: reportlab.lib.utils.ImageReader | None = None,
) -> bytes:
	"""
	Draw a plan onto a single-page PDF.

	Args:
		plan: Certificate plan.
		background: Raster template filling the page, or None for an overlay.

	Returns:
		PDF bytes.
	"""
	buffer = io.BytesIO()
	pdf = reportlab.pdfgen.canvas.Canvas(
		buffer,
		pagesize=(plan.page_width, plan.page_height),
		invariant=1,
	)
	if background is not None:
		pdf.drawImage(
			background,
			0,
			0,
			width=plan.page_width,
			height=plan.page_height,
			mask=None,
			preserveAspectRatio=False,
			anchor="sw",
		)
	for placed in plan.texts:
		draw_placed_text(pdf, placed)
	if plan.mark is not None:
		draw_placed_mark(pdf, plan.mark)
	pdf.showPage()
	pdf.save()
	return buffer.getvalue()


#============================================
def merge_onto_pdf_template(template: Template, overlay_bytes: bytes) -> bytes:
	"""
	Merge an overlay onto a fresh copy of the template's first page.

	Args:
		template: PDF template.
		overlay_bytes: Single-page overlay PDF.

	Returns:
		PDF bytes with one page.
	"""
	try:
		writer = pypdf.PdfWriter()
		writer.add_page(template.first_page())
		page = writer.pages[-1]
		overlay = pypdf.PdfReader(io.BytesIO(overlay_bytes)).pages[0]
		if template.page_left or template.page_bottom:
			transform = pypdf.Transformation().translate(template.page_left, template.page_bottom)
			page.merge_transformed_page(overlay, transform)
		else:
			page.merge_page(overlay)
		buffer = io.BytesIO()
		writer.write(buffer)
	except Exception as error:
		raise TemplateRenderError(f"Cannot merge onto template page: {error}") from error
	return buffer.getvalue()


#============================================
def render_certificate(
	template: Template,
	layout: LayoutModel,
	row: dict,
	mapping: dict[str, str],
	row_index: int = 0,
	space: DesignSpace | None = None,
	font_cache: FontCache | None = None,
	background: reportlab.lib.utils.ImageReader | None = None,
	mark_size: float = MARK_SIZE,
	url_template: str = VERIFY_URL_TEMPLATE,
) -> bytes:
	"""
	Render one certificate.

	Args:
		template: Loaded template.
		layout: Layout model.
		row: Dataset row.
		mapping: Field key to column mapping.
		row_index: 0-based row index, used for the fallback identifier.
		space: Design space; derived from the template when None.
		font_cache: Font cache shared across a run.
		background: Cached image reader for raster templates.
		mark_size: Verification mark square size in design units.
		url_template: Verification URL template.

	Returns:
		PDF bytes.

	Raises:
		RowRenderError: Font, encoding or template failure for this row.
	"""
	if space is None:
		space = DesignSpace.for_page(template.page_width, template.page_height, DESIGN_WIDTH)
	if font_cache is None:
		font_cache = FontCache()
	plan = plan_certificate(
		(template.page_width, template.page_height),
		layout,
		row,
		mapping,
		row_index,
		space,
		font_cache,
		mark_size=mark_size,
		url_template=url_template,
	)
	if template.is_image:
		if background is None:
			background = template.image_reader()
		try:
			return draw_plan(plan, background)
		except RowRenderError:
			raise
		except Exception as error:
			raise TemplateRenderError(f"Cannot draw certificate: {error}") from error
	try:
		overlay_bytes = draw_plan(plan)
	except RowRenderError:
		raise
	except Exception as error:
		raise TemplateRenderError(f"Cannot draw overlay: {error}") from error
	return merge_onto_pdf_template(template, overlay_bytes)
