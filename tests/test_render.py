"""
Certificate planning and PDF rendering onto image and PDF templates.
"""

# Standard Library
import io
import warnings

# PIP3 modules
import PIL.Image
import pypdf
import pytest
import reportlab.pdfbase.pdfmetrics

# local repo modules
import certificate_forge.errors
import certificate_forge.fonts
import certificate_forge.layout
import certificate_forge.render
import certificate_forge.template
import certificate_forge.transform


TextField = certificate_forge.layout.TextField
VerificationMark = certificate_forge.layout.VerificationMark
LayoutModel = certificate_forge.layout.LayoutModel
DesignSpace = certificate_forge.transform.DesignSpace

ROW = {"Name": "Ada Lovelace", "Event": "Analytical Engines", "Serial": ""}
MAPPING = {"name": "Name", "event": "Event"}


#============================================
def build_layout(mark_enabled: bool = False) -> LayoutModel:
	fields = (
		TextField("name", "Recipient Name", 400.0, 280.0, 36.0, "#000000", "Helvetica"),
		TextField("event", "Event / Course", 400.0, 230.0, 20.0, "#003366", "Times-Roman"),
	)
	return LayoutModel(fields=fields, mark=VerificationMark(enabled=mark_enabled))


#============================================
def count_text_ops(pdf_bytes: bytes) -> int:
	"""
	Count text show operators on the first page.
	"""
	reader = pypdf.PdfReader(io.BytesIO(pdf_bytes))
	data = reader.pages[0].get_contents().get_data()
	return data.count(b") Tj")


#============================================
def plan_for(layout: LayoutModel, row: dict = ROW, mapping: dict = MAPPING, row_index: int = 0):
	space = DesignSpace.for_page(1600, 1132)
	return certificate_forge.render.plan_certificate(
		(1600.0, 1132.0),
		layout,
		row,
		mapping,
		row_index,
		space,
		certificate_forge.fonts.FontCache(),
	)


#============================================
def test_plan_centers_text_on_anchor() -> None:
	"""
	Font size scales with the page and the anchor is the baseline center.
	"""
	plan = plan_for(build_layout())
	assert [placed.key for placed in plan.texts] == ["name", "event"]
	name = plan.texts[0]
	width = reportlab.pdfbase.pdfmetrics.stringWidth("Ada Lovelace", "Helvetica", 72.0)
	assert name.font_size == pytest.approx(72.0)
	assert name.width == pytest.approx(width)
	assert name.x == pytest.approx(800.0 - width / 2.0)
	assert name.y == pytest.approx(1132.0 - 560.0)
	assert plan.texts[1].color == pytest.approx((0.0, 0x33 / 255.0, 0x66 / 255.0))
	assert plan.mark is None


#============================================
def test_disabled_field_is_removed_without_moving_others() -> None:
	layout = build_layout()
	full = plan_for(layout)
	layout = certificate_forge.layout.update_field(layout, "event", enabled=False)
	reduced = plan_for(layout)
	assert [placed.key for placed in reduced.texts] == ["name"]
	assert reduced.texts[0] == full.texts[0]


#============================================
def test_unmapped_and_blank_values_are_skipped() -> None:
	layout = build_layout()
	assert [placed.key for placed in plan_for(layout, mapping={"name": "Name"}).texts] == ["name"]
	row = {"Name": "Ada Lovelace", "Event": "   "}
	assert [placed.key for placed in plan_for(layout, row=row).texts] == ["name"]
	row = {"Name": "Ada Lovelace"}
	assert [placed.key for placed in plan_for(layout, row=row).texts] == ["name"]


#============================================
def test_plan_places_verification_mark() -> None:
	plan = plan_for(build_layout(mark_enabled=True), row_index=1)
	mark = plan.mark
	assert mark.identifier == "CERT-2"
	assert mark.payload == "https://verify.certiforge.app/cert/CERT-2"
	assert mark.size == pytest.approx(120.0)
	assert mark.x == pytest.approx(1400.0 - 60.0)
	assert mark.y == pytest.approx(1132.0 - 960.0 - 60.0)


#============================================
def test_render_on_image_template(png_template_bytes) -> None:
	template = certificate_forge.template.load_template(png_template_bytes, "image/png")
	document = certificate_forge.render.render_certificate(template, build_layout(), ROW, MAPPING)
	reader = pypdf.PdfReader(io.BytesIO(document))
	assert len(reader.pages) == 1
	assert float(reader.pages[0].mediabox.width) == pytest.approx(1600.0)
	assert float(reader.pages[0].mediabox.height) == pytest.approx(1132.0)
	assert count_text_ops(document) == 2
	text = reader.pages[0].extract_text()
	assert "Ada Lovelace" in text
	assert "Analytical Engines" in text


#============================================
def test_disabled_field_draws_nothing(png_template_bytes) -> None:
	template = certificate_forge.template.load_template(png_template_bytes, "image/png")
	layout = certificate_forge.layout.update_field(build_layout(), "event", enabled=False)
	document = certificate_forge.render.render_certificate(template, layout, ROW, MAPPING)
	assert count_text_ops(document) == 1
	assert "Analytical Engines" not in pypdf.PdfReader(io.BytesIO(document)).pages[0].extract_text()


#============================================
def test_render_on_pdf_template(pdf_template_bytes) -> None:
	"""
	The overlay merges onto the template page, which keeps its own content.
	"""
	template = certificate_forge.template.load_template(pdf_template_bytes, "application/pdf")
	document = certificate_forge.render.render_certificate(template, build_layout(True), ROW, MAPPING)
	reader = pypdf.PdfReader(io.BytesIO(document))
	assert len(reader.pages) == 1
	assert float(reader.pages[0].mediabox.width) == pytest.approx(792.0)
	text = reader.pages[0].extract_text()
	assert "TEMPLATE" in text
	assert "Ada Lovelace" in text
	assert count_text_ops(document) == 3


#============================================
def test_template_is_not_mutated_between_rows(pdf_template_bytes) -> None:
	template = certificate_forge.template.load_template(pdf_template_bytes, "application/pdf")
	first = certificate_forge.render.render_certificate(template, build_layout(), ROW, MAPPING)
	second = certificate_forge.render.render_certificate(
		template,
		build_layout(),
		{"Name": "Grace Hopper", "Event": "Compilers"},
		MAPPING,
		row_index=1,
	)
	assert count_text_ops(first) == 3
	assert count_text_ops(second) == 3
	assert "Ada Lovelace" not in pypdf.PdfReader(io.BytesIO(second)).pages[0].extract_text()


#============================================
def test_oversized_identifier_is_a_row_error(png_template_bytes) -> None:
	template = certificate_forge.template.load_template(png_template_bytes, "image/png")
	row = dict(ROW, Serial="X" * 5000)
	with pytest.raises(certificate_forge.errors.EncodingError):
		certificate_forge.render.render_certificate(
			template,
			build_layout(mark_enabled=True),
			row,
			dict(MAPPING, id="Serial"),
		)


#============================================
def test_malformed_templates_rejected(png_template_bytes, pdf_template_bytes) -> None:
	ConfigurationError = certificate_forge.errors.ConfigurationError
	with pytest.raises(ConfigurationError):
		certificate_forge.template.load_template(b"garbage", "application/pdf")
	with pytest.raises(ConfigurationError):
		certificate_forge.template.load_template(png_template_bytes, "application/pdf")
	with pytest.raises(ConfigurationError):
		certificate_forge.template.load_template(pdf_template_bytes, "image/png")
	with pytest.raises(ConfigurationError):
		certificate_forge.template.load_template(None, "image/png")
	with pytest.raises(ConfigurationError):
		certificate_forge.template.load_template(png_template_bytes, "image/gif")


#============================================
def test_transparent_image_template_flattens_on_white() -> None:
	image = PIL.Image.new("RGBA", (80, 60), (0, 0, 0, 0))
	buffer = io.BytesIO()
	image.save(buffer, format="PNG")
	template = certificate_forge.template.load_template(buffer.getvalue(), "image/png")
	assert template.image.mode == "RGB"
	assert template.image.getpixel((10, 10)) == (255, 255, 255)
	assert (template.page_width, template.page_height) == (80.0, 60.0)


#============================================
def test_pdf_template_merge_uses_writer_owned_page(pdf_template_bytes) -> None:
	"""
	Merging onto a PDF template raises no pypdf deprecation warnings.
	"""
	template = certificate_forge.template.load_template(pdf_template_bytes, "application/pdf")
	with warnings.catch_warnings(record=True) as caught:
		warnings.simplefilter("always")
		certificate_forge.render.render_certificate(template, build_layout(), ROW, MAPPING)
	messages = [
		str(warning.message)
		for warning in caught
		if issubclass(warning.category, DeprecationWarning) and "pypdf" in str(warning.message)
	]
	assert messages == []


#============================================
def test_pdf_template_with_offset_mediabox(pdf_template_bytes) -> None:
	reader = pypdf.PdfReader(io.BytesIO(pdf_template_bytes))
	writer = pypdf.PdfWriter()
	writer.add_page(reader.pages[0])
	writer.pages[-1].mediabox = pypdf.generic.RectangleObject([50, 40, 842, 652])
	buffer = io.BytesIO()
	writer.write(buffer)
	template = certificate_forge.template.load_template(buffer.getvalue(), "application/pdf")
	assert (template.page_left, template.page_bottom) == (50.0, 40.0)
	with warnings.catch_warnings(record=True) as caught:
		warnings.simplefilter("always")
		document = certificate_forge.render.render_certificate(template, build_layout(), ROW, MAPPING)
	assert not [warning for warning in caught if "pypdf" in str(warning.message)]
	page = pypdf.PdfReader(io.BytesIO(document)).pages[0]
	assert float(page.mediabox.left) == pytest.approx(50.0)
	assert float(page.mediabox.width) == pytest.approx(792.0)
	assert "Ada Lovelace" in page.extract_text()
