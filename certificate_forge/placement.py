"""
Interactive placement: hit-testing and the pointer gesture state machine.

Events arrive in preview pixels and are mapped into design space before
any hit-test. The layout model is the only thing a gesture changes.
"""

# Standard Library
import dataclasses

# local repo modules
import certificate_forge as cforge
import certificate_forge.config
import certificate_forge.errors
import certificate_forge.fonts
import certificate_forge.layout
import certificate_forge.transform
import certificate_forge.verification


LayoutModel = cforge.layout.LayoutModel
TextField = cforge.layout.TextField
DesignSpace = cforge.transform.DesignSpace
FontCache = cforge.fonts.FontCache
LayoutLockedError = cforge.errors.LayoutLockedError

MARK_SIZE = cforge.config.MARK_SIZE
HIT_PADDING = cforge.config.HIT_PADDING
PREVIEW_WIDTH = cforge.config.PREVIEW_WIDTH


@dataclasses.dataclass(frozen=True)
class HitTarget:
	kind: str
	key: str = ""


MARK_TARGET = HitTarget("mark")


#============================================
def field_target(key: str) -> HitTarget:
	return HitTarget("field", key)


@dataclasses.dataclass(frozen=True)
class PointerDown:
	x: float
	y: float


@dataclasses.dataclass(frozen=True)
class PointerMove:
	x: float
	y: float


@dataclasses.dataclass(frozen=True)
class PointerUp:
	x: float
	y: float


@dataclasses.dataclass(frozen=True)
class PointerLeave:
	pass


@dataclasses.dataclass(frozen=True)
class Idle:
	pass


@dataclasses.dataclass(frozen=True)
class Hovering:
	target: HitTarget


@dataclasses.dataclass(frozen=True)
class Dragging:
	target: HitTarget
	offset: tuple[float, float]


GestureState = Idle | Hovering | Dragging
PointerEvent = PointerDown | PointerMove | PointerUp | PointerLeave


#============================================
def display_text(
	field: TextField,
	sample_row: dict | None = None,
	mapping: dict[str, str] | None = None,
) -> str:
	"""
	Text shown for a field on the preview.

	Args:
		field: Text field.
		sample_row: Optional row used to show real data.
		mapping: Field key to column mapping for the sample row.

	Returns:
		Sample value when bound and non-empty, else the bracketed label.
	"""
	if sample_row is not None and mapping:
		value = cforge.verification.cell_text(sample_row, mapping.get(field.key))
		if value.strip():
			return value
	return f"[{field.label}]"


#============================================
def field_footprint(
	field: TextField,
	text: str,
	font_cache: FontCache,
	padding: float = HIT_PADDING,
) -> tuple[float, float, float, float]:
	"""
	Compute the padded text box of a field in design space.

	The anchor is the horizontal center of the baseline; text rises
	font_size units above it.

	Returns:
		Bounding box (x0, y0, x1, y1) with y growing downward.
	"""
	width = font_cache.string_width(text, field.font_family, field.font_size)
	x0 = field.x - width / 2.0 - padding
	x1 = field.x + width / 2.0 + padding
	y0 = field.y - field.font_size - padding
	y1 = field.y + padding
	return (x0, y0, x1, y1)


#============================================
def mark_footprint(
	layout: LayoutModel,
	mark_size: float = MARK_SIZE,
	padding: float = HIT_PADDING,
) -> tuple[float, float, float, float]:
	half = mark_size / 2.0 + padding
	return (layout.mark.x - half, layout.mark.y - half, layout.mark.x + half, layout.mark.y + half)


#============================================
def box_contains(box: tuple[float, float, float, float], point: tuple[float, float]) -> bool:
	return box[0] <= point[0] <= box[2] and box[1] <= point[1] <= box[3]


#============================================
def hit_test(
	layout: LayoutModel,
	point: tuple[float, float],
	font_cache: FontCache,
	mark_size: float = MARK_SIZE,
	padding: float = HIT_PADDING,
	sample_row: dict | None = None,
	mapping: dict[str, str] | None = None,
) -> HitTarget | None:
	"""
	Find the element under a design space point.

	The verification mark is tested first, then enabled fields in model
	order; the first hit wins.

	Args:
		layout: Layout model.
		point: Design space (x, y).
		font_cache: Font cache used for text metrics.
		mark_size: Verification mark square size.
		padding: Hit margin around each footprint.
		sample_row: Optional row the preview shows.
		mapping: Field key to column mapping for the sample row.

	Returns:
		HitTarget or None.
	"""
	if layout.mark.enabled and box_contains(mark_footprint(layout, mark_size, padding), point):
		return MARK_TARGET
	for field in layout.enabled_fields():
		text = display_text(field, sample_row, mapping)
		if box_contains(field_footprint(field, text, font_cache, padding), point):
			return field_target(field.key)
	return None


#============================================
def target_anchor(layout: LayoutModel, target: HitTarget) -> tuple[float, float]:
	if target.kind == "mark":
		return (layout.mark.x, layout.mark.y)
	field = layout.get_field(target.key)
	if field is None:
		raise KeyError(target.key)
	return (field.x, field.y)


#============================================
def move_target(layout: LayoutModel, target: HitTarget, anchor: tuple[float, float]) -> LayoutModel:
	if target.kind == "mark":
		return cforge.layout.move_mark(layout, anchor[0], anchor[1])
	return cforge.layout.move_field(layout, target.key, anchor[0], anchor[1])


#============================================
def update_gesture(
	state: GestureState,
	event: PointerEvent,
	layout: LayoutModel,
	space: DesignSpace,
	scale: float,
	font_cache: FontCache,
	mark_size: float = MARK_SIZE,
	sample_row: dict | None = None,
	mapping: dict[str, str] | None = None,
) -> tuple[GestureState, LayoutModel]:
	"""
	Advance the gesture state machine by one pointer event.

	Args:
		state: Current gesture state.
		event: Pointer event in preview pixels.
		layout: Current layout model.
		space: Design space.
		scale: Preview scale (preview pixels per design unit).
		font_cache: Font cache used for text metrics.
		mark_size: Verification mark square size.
		sample_row: Optional row the preview shows.
		mapping: Field key to column mapping for the sample row.

	Returns:
		Tuple of (new state, new layout).
	"""
	if isinstance(event, PointerLeave):
		return (Idle(), layout)

	point = cforge.transform.from_preview_pixels((event.x, event.y), scale)

	def hover_at(position: tuple[float, float]) -> GestureState:
		target = hit_test(
			layout,
			position,
			font_cache,
			mark_size=mark_size,
			sample_row=sample_row,
			mapping=mapping,
		)
		if target is None:
			return Idle()
		return Hovering(target)

	if isinstance(event, PointerDown):
		target = hit_test(
			layout,
			point,
			font_cache,
			mark_size=mark_size,
			sample_row=sample_row,
			mapping=mapping,
		)
		if target is None:
			return (Idle(), layout)
		anchor = target_anchor(layout, target)
		offset = (point[0] - anchor[0], point[1] - anchor[1])
		return (Dragging(target, offset), layout)

	if isinstance(event, PointerMove):
		if isinstance(state, Dragging):
			anchor = (point[0] - state.offset[0], point[1] - state.offset[1])
			anchor = cforge.transform.clamp_to_design(anchor, space)
			return (state, move_target(layout, state.target, anchor))
		return (hover_at(point), layout)

	if isinstance(event, PointerUp):
		return (hover_at(point), layout)

	raise TypeError(f"Unknown pointer event: {event!r}")


class LayoutEditor:
	"""
	Editing session holding the layout, the gesture state and the preview size.

	Edits are refused while the attached pipeline is running.
	"""

	def __init__(
		self,
		layout: LayoutModel | None = None,
		space: DesignSpace | None = None,
		preview_width: float = PREVIEW_WIDTH,
		pipeline=None,
		font_cache: FontCache | None = None,
		mark_size: float = MARK_SIZE,
	):
		self.layout = layout if layout is not None else cforge.layout.default_layout()
		self.space = space if space is not None else DesignSpace()
		self.preview_width = preview_width
		self.pipeline = pipeline
		self.font_cache = font_cache if font_cache is not None else FontCache()
		self.mark_size = mark_size
		self.state: GestureState = Idle()
		self.sample_row: dict | None = None
		self.mapping: dict[str, str] | None = None

	@property
	def scale(self) -> float:
		return cforge.transform.preview_scale(self.preview_width, self.space)

	@property
	def locked(self) -> bool:
		return self.pipeline is not None and self.pipeline.is_running

	def _check_unlocked(self) -> None:
		if self.locked:
			raise LayoutLockedError("Layout cannot change while a batch is running")

	def handle(self, event: PointerEvent) -> GestureState:
		"""
		Feed one pointer event through the gesture state machine.

		Args:
			event: Pointer event in preview pixels.

		Returns:
			New gesture state.
		"""
		if self.locked and (isinstance(event, PointerDown) or isinstance(self.state, Dragging)):
			self.state = Idle()
			self._check_unlocked()
		state, layout = update_gesture(
			self.state,
			event,
			self.layout,
			self.space,
			self.scale,
			self.font_cache,
			mark_size=self.mark_size,
			sample_row=self.sample_row,
			mapping=self.mapping,
		)
		self.state = state
		self.layout = layout
		return state

	def update_field(self, key: str, **changes) -> LayoutModel:
		self._check_unlocked()
		self.layout = cforge.layout.update_field(self.layout, key, **changes)
		return self.layout

	def set_mark_enabled(self, enabled: bool) -> LayoutModel:
		self._check_unlocked()
		self.layout = cforge.layout.set_mark_enabled(self.layout, enabled)
		return self.layout

	def move_mark(self, x: float, y: float) -> LayoutModel:
		self._check_unlocked()
		x, y = cforge.transform.clamp_to_design((x, y), self.space)
		self.layout = cforge.layout.move_mark(self.layout, x, y)
		return self.layout

	def resize_preview(self, preview_width: float) -> None:
		cforge.transform.preview_scale(preview_width, self.space)
		self.preview_width = preview_width
