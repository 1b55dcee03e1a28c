"""
Shared configuration and constants.
"""

import dataclasses


DESIGN_WIDTH = 800.0
DEFAULT_DESIGN_HEIGHT = 566.0

MARK_SIZE = 60.0
DEFAULT_MARK_X = 700.0
DEFAULT_MARK_Y = 480.0
HIT_PADDING = 6.0

QR_BOX_SIZE = 10
QR_BORDER = 1
VERIFY_URL_TEMPLATE = "https://verify.certiforge.app/cert/{identifier}"

ID_FIELD_KEY = "id"
NAME_FIELD_KEY = "name"
FALLBACK_ID_PREFIX = "CERT"
FALLBACK_NAME_PREFIX = "certificate"
OUTPUT_EXTENSION = ".pdf"
DEFAULT_ARCHIVE_NAME = "certificates.zip"
ARCHIVE_DATE_TIME = (1980, 1, 1, 0, 0, 0)

DEFAULT_TEXT_COLOR = "#000000"

PROGRESS_BAR_WIDTH = 20

PREVIEW_WIDTH = 800
PREVIEW_STROKE_WIDTH = 2.0
PREVIEW_MARK_COLOR = "#d4a017"
PREVIEW_MARK_CAPTION_SIZE = 10.0
PREVIEW_HOVER_COLOR = "#d4a017"
PREVIEW_EMPTY_BACKGROUND = "#1a1a2e"

NAMED_COLORS = {
	"Black": "#000000",
	"White": "#FFFFFF",
	"Dark Navy": "#1a1a2e",
	"Gold": "#d4a017",
	"Dark Red": "#8B0000",
	"Dark Blue": "#003366",
}

# key, label, required
FIELD_CATALOGUE = (
	("name", "Recipient Name", True),
	("event", "Event / Course", False),
	("date", "Date", False),
	("id", "Certificate ID", False),
)


@dataclasses.dataclass
class BatchConfig:
	design_width: float = DESIGN_WIDTH
	font_dir: str | None = None
	verify_url_template: str = VERIFY_URL_TEMPLATE
	mark_size: float = MARK_SIZE
	spool_max_size: int | None = None
	archive_name: str = DEFAULT_ARCHIVE_NAME
	verbose: bool = False


#============================================
def missing_required_mappings(mapping: dict[str, str]) -> list[str]:
	"""
	List required field keys that have no column mapping.

	Args:
		mapping: Field key to column name mapping.

	Returns:
		Field keys that still need a column.
	"""
	missing: list[str] = []
	for key, _label, required in FIELD_CATALOGUE:
		if required and not mapping.get(key):
			missing.append(key)
	return missing
