"""
Layout model: text fields and the verification mark in design space.
"""

# Standard Library
import dataclasses
import json
import pathlib

# local repo modules
import certificate_forge as cforge
import certificate_forge.config


DEFAULT_MARK_X = cforge.config.DEFAULT_MARK_X
DEFAULT_MARK_Y = cforge.config.DEFAULT_MARK_Y
DEFAULT_TEXT_COLOR = cforge.config.DEFAULT_TEXT_COLOR
NAMED_COLORS = cforge.config.NAMED_COLORS


@dataclasses.dataclass(frozen=True)
class TextField:
	key: str
	label: str
	x: float
	y: float
	font_size: float = 16.0
	color: str = DEFAULT_TEXT_COLOR
	font_family: str = "Helvetica"
	enabled: bool = True


@dataclasses.dataclass(frozen=True)
class VerificationMark:
	enabled: bool = False
	x: float = DEFAULT_MARK_X
	y: float = DEFAULT_MARK_Y


@dataclasses.dataclass(frozen=True)
class LayoutModel:
	fields: tuple[TextField, ...] = ()
	mark: VerificationMark = VerificationMark()

	def __post_init__(self) -> None:
		seen: set[str] = set()
		for field in self.fields:
			if field.key in seen:
				raise ValueError(f"Duplicate field key: {field.key}")
			seen.add(field.key)

	def get_field(self, key: str) -> TextField | None:
		for field in self.fields:
			if field.key == key:
				return field
		return None

	def enabled_fields(self) -> list[TextField]:
		return [field for field in self.fields if field.enabled]


#============================================
def default_layout() -> LayoutModel:
	"""
	Build the layout a new session starts with.

	Returns:
		LayoutModel with the four standard certificate fields.
	"""
	fields = (
		TextField("name", "Recipient Name", 400.0, 280.0, 36.0, "#000000", "Playfair Display", True),
		TextField("event", "Event / Course", 400.0, 230.0, 20.0, "#003366", "Montserrat", True),
		TextField("date", "Date", 400.0, 400.0, 16.0, "#666666", "Lato", True),
		TextField("id", "Certificate ID", 400.0, 440.0, 12.0, "#999999", "Courier", False),
	)
	return LayoutModel(fields=fields, mark=VerificationMark())


#============================================
def update_field(layout: LayoutModel, key: str, **changes) -> LayoutModel:
	"""
	Replace one field, leaving every other field untouched.

	Args:
		layout: Current layout.
		key: Key of the field to change.
		**changes: TextField attributes to replace.

	Returns:
		New LayoutModel.
	"""
	if "key" in changes:
		raise ValueError("Field keys cannot be changed")
	if layout.get_field(key) is None:
		raise KeyError(key)
	fields = tuple(
		dataclasses.replace(field, **changes) if field.key == key else field
		for field in layout.fields
	)
	return dataclasses.replace(layout, fields=fields)


#============================================
def move_field(layout: LayoutModel, key: str, x: float, y: float) -> LayoutModel:
	return update_field(layout, key, x=x, y=y)


#============================================
def move_mark(layout: LayoutModel, x: float, y: float) -> LayoutModel:
	return dataclasses.replace(layout, mark=dataclasses.replace(layout.mark, x=x, y=y))


#============================================
def set_mark_enabled(layout: LayoutModel, enabled: bool) -> LayoutModel:
	return dataclasses.replace(layout, mark=dataclasses.replace(layout.mark, enabled=enabled))


#============================================
def parse_hex_color(value: str) -> tuple[float, float, float]:
	"""
	Parse a hex color string into RGB floats.

	Args:
		value: Color string like "#AABBCC" or a palette name like "Gold".

	Returns:
		Tuple of (r, g, b) in 0.0-1.0 range. Malformed input gives black.
	"""
	value = NAMED_COLORS.get(value, value)
	if not value or not value.startswith("#") or len(value) != 7:
		return (0.0, 0.0, 0.0)
	try:
		red = int(value[1:3], 16) / 255.0
		green = int(value[3:5], 16) / 255.0
		blue = int(value[5:7], 16) / 255.0
	except ValueError:
		return (0.0, 0.0, 0.0)
	return (red, green, blue)


#============================================
def layout_to_dict(layout: LayoutModel) -> dict:
	"""
	Convert a layout into JSON-ready data.

	Args:
		layout: Layout to convert.

	Returns:
		Dictionary with "fields" and "mark" entries.
	"""
	return {
		"fields": [dataclasses.asdict(field) for field in layout.fields],
		"mark": dataclasses.asdict(layout.mark),
	}


#============================================
def layout_from_dict(data: dict) -> LayoutModel:
	"""
	Build a layout from JSON data.

	Args:
		data: Dictionary as written by layout_to_dict.

	Returns:
		LayoutModel.
	"""
	fields: list[TextField] = []
	for entry in data.get("fields", []):
		fields.append(
			TextField(
				key=str(entry["key"]),
				label=str(entry.get("label", entry["key"])),
				x=float(entry["x"]),
				y=float(entry["y"]),
				font_size=float(entry.get("font_size", 16.0)),
				color=str(entry.get("color", DEFAULT_TEXT_COLOR)),
				font_family=str(entry.get("font_family", "Helvetica")),
				enabled=bool(entry.get("enabled", True)),
			)
		)
	mark_data = data.get("mark", {})
	mark = VerificationMark(
		enabled=bool(mark_data.get("enabled", False)),
		x=float(mark_data.get("x", DEFAULT_MARK_X)),
		y=float(mark_data.get("y", DEFAULT_MARK_Y)),
	)
	return LayoutModel(fields=tuple(fields), mark=mark)


#============================================
def load_layout(path: pathlib.Path) -> LayoutModel:
	with path.open("r", encoding="utf-8") as handle:
		data = json.load(handle)
	return layout_from_dict(data)


#============================================
def save_layout(layout: LayoutModel, path: pathlib.Path) -> None:
	with path.open("w", encoding="utf-8") as handle:
		json.dump(layout_to_dict(layout), handle, indent=2, sort_keys=True)
