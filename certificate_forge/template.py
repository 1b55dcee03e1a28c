"""
Template loading from raw bytes plus a type tag.
"""

# Standard Library
import dataclasses
import io
import pathlib

# PIP3 modules
import PIL.Image
import pypdf
import reportlab.lib.utils

# local repo modules
import certificate_forge as cforge
import certificate_forge.errors


ConfigurationError = cforge.errors.ConfigurationError

CONTENT_TYPES = {
	"image/png": "PNG",
	"png": "PNG",
	"image/jpeg": "JPEG",
	"image/jpg": "JPEG",
	"jpeg": "JPEG",
	"jpg": "JPEG",
	"application/pdf": "PDF",
	"pdf": "PDF",
}

SUFFIX_TYPES = {
	".png": "image/png",
	".jpg": "image/jpeg",
	".jpeg": "image/jpeg",
	".pdf": "application/pdf",
}


@dataclasses.dataclass(frozen=True)
class Template:
	kind: str
	data: bytes
	page_width: float
	page_height: float
	image: PIL.Image.Image | None = None
	page_left: float = 0.0
	page_bottom: float = 0.0

	@property
	def is_image(self) -> bool:
		return self.kind != "PDF"

	def image_reader(self) -> reportlab.lib.utils.ImageReader:
		if self.image is None:
			raise ValueError("PDF templates have no raster image")
		return reportlab.lib.utils.ImageReader(self.image)

	def first_page(self) -> pypdf.PageObject:
		"""
		Read a fresh copy of the first page of a PDF template.
		"""
		reader = pypdf.PdfReader(io.BytesIO(self.data))
		return reader.pages[0]


#============================================
def guess_content_type(path: pathlib.Path) -> str:
	"""
	Guess a template type tag from a filename.

	Args:
		path: Template path.

	Returns:
		MIME style type tag.
	"""
	suffix = path.suffix.lower()
	if suffix not in SUFFIX_TYPES:
		raise ConfigurationError(f"Unsupported template type: {path.name}")
	return SUFFIX_TYPES[suffix]


#============================================
def load_image_template(data: bytes, image_format: str) -> Template:
	try:
		image = PIL.Image.open(io.BytesIO(data), formats=[image_format])
		image.load()
	except Exception as error:
		raise ConfigurationError(f"Template is not a readable {image_format} image: {error}") from error
	if image.mode in ("RGBA", "LA", "P"):
		rgba = image.convert("RGBA")
		image = PIL.Image.new("RGB", rgba.size, (255, 255, 255))
		image.paste(rgba, mask=rgba.getchannel("A"))
	elif image.mode not in ("RGB", "L"):
		image = image.convert("RGB")
	width, height = image.size
	return Template(
		kind=image_format,
		data=data,
		page_width=float(width),
		page_height=float(height),
		image=image,
	)


#============================================
def load_pdf_template(data: bytes) -> Template:
	try:
		reader = pypdf.PdfReader(io.BytesIO(data))
		pages = len(reader.pages)
		box = reader.pages[0].mediabox if pages > 0 else None
	except Exception as error:
		raise ConfigurationError(f"Template is not a readable PDF: {error}") from error
	if box is None:
		raise ConfigurationError("Template PDF has no pages")
	return Template(
		kind="PDF",
		data=data,
		page_width=float(box.width),
		page_height=float(box.height),
		page_left=float(box.left),
		page_bottom=float(box.bottom),
	)


#============================================
def load_template(data: bytes | None, content_type: str) -> Template:
	"""
	Parse template bytes according to their declared type.

	Args:
		data: Raw template bytes.
		content_type: Type tag such as "image/png" or "application/pdf".

	Returns:
		Template.

	Raises:
		ConfigurationError: Missing bytes, unknown type or unparseable data.
	"""
	if not data:
		raise ConfigurationError("No template provided")
	kind = CONTENT_TYPES.get((content_type or "").strip().lower())
	if kind is None:
		raise ConfigurationError(f"Unsupported template type: {content_type}")
	if kind == "PDF":
		template = load_pdf_template(data)
	else:
		template = load_image_template(data, kind)
	if template.page_width <= 0 or template.page_height <= 0:
		raise ConfigurationError("Template has an empty page size")
	return template


#============================================
def read_template_file(path: pathlib.Path) -> Template:
	content_type = guess_content_type(path)
	if not path.is_file():
		raise ConfigurationError(f"Template not found: {path}")
	return load_template(path.read_bytes(), content_type)
