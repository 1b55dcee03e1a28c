"""
Font family resolution for certificate text.
"""

# Standard Library
import dataclasses
import enum
import hashlib
import pathlib

# PIP3 modules
import reportlab.pdfbase.pdfmetrics
import reportlab.pdfbase.ttfonts

# local repo modules
import certificate_forge as cforge
import certificate_forge.errors


FontResolutionError = cforge.errors.FontResolutionError


class FontCategory(enum.Enum):
	# base PDF font, weight, embeddable resource stem
	SERIF_DISPLAY = ("Times-Bold", 700, "PlayfairDisplay")
	SANS_MODERN = ("Helvetica", 400, "Montserrat")
	SCRIPT = ("Times-Italic", 400, "GreatVibes")
	MONOSPACE = ("Courier", 400, "CourierPrime")

	@property
	def base_font(self) -> str:
		return self.value[0]

	@property
	def weight(self) -> int:
		return self.value[1]

	@property
	def resource_stem(self) -> str:
		return self.value[2]


DEFAULT_CATEGORY = FontCategory.SANS_MODERN

BASE14_CATEGORIES = {
	"Helvetica": FontCategory.SANS_MODERN,
	"Helvetica-Bold": FontCategory.SANS_MODERN,
	"Helvetica-Oblique": FontCategory.SANS_MODERN,
	"Helvetica-BoldOblique": FontCategory.SANS_MODERN,
	"Times-Roman": FontCategory.SERIF_DISPLAY,
	"Times-Bold": FontCategory.SERIF_DISPLAY,
	"Times-Italic": FontCategory.SCRIPT,
	"Times-BoldItalic": FontCategory.SCRIPT,
	"Courier": FontCategory.MONOSPACE,
	"Courier-Bold": FontCategory.MONOSPACE,
	"Courier-Oblique": FontCategory.MONOSPACE,
	"Courier-BoldOblique": FontCategory.MONOSPACE,
}

# keys are normalized family names
FAMILY_CATEGORIES = {
	"playfairdisplay": FontCategory.SERIF_DISPLAY,
	"merriweather": FontCategory.SERIF_DISPLAY,
	"cinzel": FontCategory.SERIF_DISPLAY,
	"georgia": FontCategory.SERIF_DISPLAY,
	"montserrat": FontCategory.SANS_MODERN,
	"lato": FontCategory.SANS_MODERN,
	"inter": FontCategory.SANS_MODERN,
	"opensans": FontCategory.SANS_MODERN,
	"roboto": FontCategory.SANS_MODERN,
	"greatvibes": FontCategory.SCRIPT,
	"dancingscript": FontCategory.SCRIPT,
	"pacifico": FontCategory.SCRIPT,
	"courierprime": FontCategory.MONOSPACE,
	"jetbrainsmono": FontCategory.MONOSPACE,
	"robotomono": FontCategory.MONOSPACE,
}


@dataclasses.dataclass(frozen=True)
class FontChoice:
	family: str
	category: FontCategory
	font_name: str
	resource_path: pathlib.Path | None = None

	@property
	def weight(self) -> int:
		return self.category.weight


#============================================
def normalize_family(name: str) -> str:
	return "".join(char for char in name.lower() if char.isalnum())


#============================================
def resolve_category(family: str) -> FontCategory:
	"""
	Find the category for a family name.

	Args:
		family: Font family name as stored on a text field.

	Returns:
		FontCategory, DEFAULT_CATEGORY for unknown names.
	"""
	if family in BASE14_CATEGORIES:
		return BASE14_CATEGORIES[family]
	normalized = normalize_family(family)
	for base_name, category in BASE14_CATEGORIES.items():
		if normalize_family(base_name) == normalized:
			return category
	return FAMILY_CATEGORIES.get(normalized, DEFAULT_CATEGORY)


#============================================
def find_font_resource(font_dir: pathlib.Path | None, stem: str) -> pathlib.Path | None:
	"""
	Look for an embeddable TrueType file in the font directory.

	Args:
		font_dir: Directory of .ttf files, or None.
		stem: File stem without spaces, e.g. "PlayfairDisplay".

	Returns:
		Path to the font file or None.
	"""
	if font_dir is None or not stem:
		return None
	for candidate in (f"{stem}.ttf", f"{stem}-Regular.ttf"):
		path = font_dir / candidate
		if path.is_file():
			return path
	return None


#============================================
def register_font_resource(path: pathlib.Path) -> str:
	"""
	Register a TrueType file with reportlab.

	Args:
		path: Font file.

	Returns:
		Registered reportlab font name.
	"""
	# the registry is process-wide, so the name carries the file's directory
	directory_token = hashlib.sha1(str(path.resolve().parent).encode("utf-8")).hexdigest()[:8]
	font_name = f"CF-{path.stem}-{directory_token}"
	if font_name in reportlab.pdfbase.pdfmetrics.getRegisteredFontNames():
		return font_name
	try:
		font = reportlab.pdfbase.ttfonts.TTFont(font_name, str(path))
	except Exception as error:
		raise FontResolutionError(f"Cannot load font resource {path.name}: {error}") from error
	reportlab.pdfbase.pdfmetrics.registerFont(font)
	return font_name


class FontCache:
	"""
	Resolves family names to reportlab fonts, once per family per run.
	"""

	def __init__(self, font_dir: str | pathlib.Path | None = None, verbose: bool = False):
		self.font_dir = pathlib.Path(font_dir) if font_dir else None
		self.verbose = verbose
		self._choices: dict[str, FontChoice] = {}

	def resolve(self, family: str) -> FontChoice:
		"""
		Resolve a family to a drawable font.

		Order: a resource file named after the family, then the base-14
		font of the same name, then the category resource file, then the
		category base font.

		Raises:
			FontResolutionError: A resource file exists but cannot be loaded.
		"""
		cached = self._choices.get(family)
		if cached is not None:
			return cached
		category = resolve_category(family)
		stem = "".join(char for char in family if char.isalnum() or char == "-")
		resource = find_font_resource(self.font_dir, stem)
		if resource is None and family not in BASE14_CATEGORIES:
			resource = find_font_resource(self.font_dir, category.resource_stem)
		if resource is not None:
			font_name = register_font_resource(resource)
		elif family in BASE14_CATEGORIES:
			font_name = family
		else:
			font_name = category.base_font
			if self.verbose:
				print(
					f"[WARN] Font '{family}' has no resource. "
					f"Using '{font_name}' (weight {category.weight})."
				)
		choice = FontChoice(
			family=family,
			category=category,
			font_name=font_name,
			resource_path=resource,
		)
		self._choices[family] = choice
		return choice

	def string_width(self, text: str, family: str, font_size: float) -> float:
		choice = self.resolve(family)
		return reportlab.pdfbase.pdfmetrics.stringWidth(text, choice.font_name, font_size)
