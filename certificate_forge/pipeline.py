"""
Batch generation: render every row and package the results into a ZIP.

Rows are processed strictly in order. Finished documents accumulate in the
archive buffer until the run ends, so memory grows with the dataset unless
BatchConfig.spool_max_size moves the buffer to disk past that size.
"""

# Standard Library
import dataclasses
import enum
import io
import json
import pathlib
import re
import tempfile
import zipfile
from collections.abc import Callable

# local repo modules
import certificate_forge as cforge
import certificate_forge.config
import certificate_forge.errors
import certificate_forge.fonts
import certificate_forge.layout
import certificate_forge.render
import certificate_forge.template
import certificate_forge.transform
import certificate_forge.verification


BatchConfig = cforge.config.BatchConfig
LayoutModel = cforge.layout.LayoutModel
DesignSpace = cforge.transform.DesignSpace
ConfigurationError = cforge.errors.ConfigurationError
RowRenderError = cforge.errors.RowRenderError
PackagingError = cforge.errors.PackagingError
PipelineStateError = cforge.errors.PipelineStateError

NAME_FIELD_KEY = cforge.config.NAME_FIELD_KEY
FALLBACK_NAME_PREFIX = cforge.config.FALLBACK_NAME_PREFIX
OUTPUT_EXTENSION = cforge.config.OUTPUT_EXTENSION
ARCHIVE_DATE_TIME = cforge.config.ARCHIVE_DATE_TIME
PROGRESS_BAR_WIDTH = cforge.config.PROGRESS_BAR_WIDTH

UNSAFE_NAME_CHARS = re.compile(r"[^A-Za-z0-9_\- ]")


class PipelineState(enum.Enum):
	IDLE = "idle"
	RUNNING = "running"
	COMPLETE = "complete"
	FAILED = "failed"


@dataclasses.dataclass
class RowFailure:
	index: int
	filename: str
	message: str


@dataclasses.dataclass
class BatchResult:
	total: int
	succeeded: int = 0
	failures: list[RowFailure] = dataclasses.field(default_factory=list)
	entries: list[str] = dataclasses.field(default_factory=list)
	archive_name: str = cforge.config.DEFAULT_ARCHIVE_NAME
	cancelled: bool = False

	@property
	def failed(self) -> int:
		return len(self.failures)

	@property
	def all_succeeded(self) -> bool:
		return not self.cancelled and self.succeeded == self.total

	def summary(self) -> str:
		if self.cancelled:
			return f"Cancelled after {self.succeeded + self.failed} of {self.total} rows"
		if self.all_succeeded:
			return f"{self.succeeded} of {self.total} succeeded"
		return f"{self.succeeded} of {self.total} succeeded, {self.failed} failed"


#============================================
def print_progress(prefix: str, current: int, total: int) -> None:
	"""
	Print a simple progress bar.

	Args:
		prefix: Label text.
		current: Current count.
		total: Total count.
	"""
	if total <= 0:
		return
	percent = int(round((current / total) * 100.0))
	filled = int(round(PROGRESS_BAR_WIDTH * percent / 100.0))
	bar = "#" * filled + "-" * (PROGRESS_BAR_WIDTH - filled)
	print(f"{prefix} [{bar}] {current}/{total} ({percent}%)", end="\r")


#============================================
def sanitize_name(value: str) -> str:
	"""
	Strip characters that are unsafe in output filenames.

	Args:
		value: Raw name.

	Returns:
		Name with only letters, digits, underscore, hyphen and space.
	"""
	return UNSAFE_NAME_CHARS.sub("", value).strip()


#============================================
def base_filename(row: dict, mapping: dict[str, str], row_index: int) -> str:
	"""
	Derive a row's output filename before deduplication.

	Args:
		row: Dataset row.
		mapping: Field key to column mapping.
		row_index: 0-based row index.

	Returns:
		Filename with extension.
	"""
	raw = cforge.verification.cell_text(row, mapping.get(NAME_FIELD_KEY))
	name = sanitize_name(raw)
	if not name:
		name = f"{FALLBACK_NAME_PREFIX}_{row_index + 1}"
	return f"{name}{OUTPUT_EXTENSION}"


#============================================
def unique_filename(filename: str, used: set[str]) -> str:
	"""
	Append a numeric suffix until the name is unused, ignoring case.

	Args:
		filename: Candidate filename.
		used: Lowercased names already taken in this archive.

	Returns:
		Unused filename.
	"""
	if filename.lower() not in used:
		return filename
	stem = filename[: -len(OUTPUT_EXTENSION)] if filename.endswith(OUTPUT_EXTENSION) else filename
	occurrence = 2
	while True:
		candidate = f"{stem}_{occurrence}{OUTPUT_EXTENSION}"
		if candidate.lower() not in used:
			return candidate
		occurrence += 1


class ArchiveWriter:
	"""
	ZIP archive with fixed timestamps so identical input gives identical bytes.
	"""

	def __init__(self, spool_max_size: int | None = None):
		if spool_max_size is None:
			self._buffer = io.BytesIO()
		else:
			self._buffer = tempfile.SpooledTemporaryFile(max_size=spool_max_size)
		self._zip = zipfile.ZipFile(self._buffer, "w", zipfile.ZIP_DEFLATED)

	def add(self, filename: str, data: bytes) -> None:
		info = zipfile.ZipInfo(filename, date_time=ARCHIVE_DATE_TIME)
		info.compress_type = zipfile.ZIP_DEFLATED
		info.external_attr = 0o644 << 16
		self._zip.writestr(info, data)

	def finish(self) -> bytes:
		self._zip.close()
		self._buffer.seek(0)
		data = self._buffer.read()
		self._buffer.close()
		return data

	def discard(self) -> None:
		self._zip.close()
		self._buffer.close()


class BatchPipeline:
	"""
	Sequential render-and-collect loop with an idle/running/complete/failed state.
	"""

	def __init__(self, config: BatchConfig | None = None):
		self.config = config or BatchConfig()
		self.state = PipelineState.IDLE
		self.result: BatchResult | None = None
		self._archive: bytes | None = None
		self._cancel_requested = False

	@property
	def is_running(self) -> bool:
		return self.state == PipelineState.RUNNING

	def cancel(self) -> None:
		"""
		Ask a running batch to stop at the next row boundary.
		"""
		if self.is_running:
			self._cancel_requested = True

	def take_archive(self) -> bytes:
		"""
		Hand over the finished archive. Each run's archive is given out once.

		Raises:
			PipelineStateError: No completed run, or already taken.
		"""
		if self.state != PipelineState.COMPLETE or self._archive is None:
			raise PipelineStateError("No finished archive available")
		archive = self._archive
		self._archive = None
		return archive

	def run(
		self,
		template_data: bytes | None,
		content_type: str,
		layout: LayoutModel,
		rows: list[dict],
		mapping: dict[str, str],
		progress: Callable[[int], None] | None = None,
		space: DesignSpace | None = None,
	) -> BatchResult:
		"""
		Render every row and package the documents.

		Args:
			template_data: Raw template bytes.
			content_type: Template type tag.
			layout: Layout model, read once for the whole run.
			rows: Dataset rows in order.
			mapping: Field key to column mapping.
			progress: Called with the number of rows completed after each row.
			space: Design space of the layout; derived from the template when None.

		Returns:
			BatchResult.

		Raises:
			ConfigurationError: Template or dataset unusable; no row processed.
			PackagingError: Archive could not be assembled.
		"""
		if self.is_running:
			raise PipelineStateError("A batch is already running")
		self.state = PipelineState.RUNNING
		self.result = None
		self._archive = None
		self._cancel_requested = False
		try:
			template = cforge.template.load_template(template_data, content_type)
			if not rows:
				raise ConfigurationError("Dataset has no rows")
			if space is None:
				space = DesignSpace.for_page(
					template.page_width,
					template.page_height,
					self.config.design_width,
				)
		except ConfigurationError:
			self.state = PipelineState.FAILED
			raise

		verbose = self.config.verbose
		result = BatchResult(total=len(rows), archive_name=self.config.archive_name)
		writer = ArchiveWriter(self.config.spool_max_size)
		try:
			finished = self._process_rows(template, layout, rows, mapping, progress, space, writer, result)
			if not finished:
				writer.discard()
				self.result = result
				self.state = PipelineState.IDLE
				return result
			try:
				archive = writer.finish()
			except Exception as error:
				raise PackagingError(f"Cannot finish archive: {error}") from error
		except Exception:
			writer.discard()
			self.state = PipelineState.FAILED
			raise
		if verbose:
			print(f"Certificates: {result.summary()}")
		self._archive = archive
		self.result = result
		self.state = PipelineState.COMPLETE
		return result

	def _process_rows(
		self,
		template: cforge.template.Template,
		layout: LayoutModel,
		rows: list[dict],
		mapping: dict[str, str],
		progress: Callable[[int], None] | None,
		space: DesignSpace,
		writer: ArchiveWriter,
		result: BatchResult,
	) -> bool:
		"""
		Render rows in order into the archive writer.

		Returns:
			False when the run was cancelled at a row boundary.
		"""
		verbose = self.config.verbose
		total = len(rows)
		font_cache = cforge.fonts.FontCache(self.config.font_dir, verbose=verbose)
		background = template.image_reader() if template.is_image else None
		used_names: set[str] = set()

		if verbose:
			print_progress("Certificates", 0, total)
		for index, row in enumerate(rows):
			if self._cancel_requested:
				result.cancelled = True
				if verbose:
					print()
					print(f"Certificates: {result.summary()}")
				return False
			filename = unique_filename(base_filename(row, mapping, index), used_names)
			try:
				document = cforge.render.render_certificate(
					template,
					layout,
					row,
					mapping,
					row_index=index,
					space=space,
					font_cache=font_cache,
					background=background,
					mark_size=self.config.mark_size,
					url_template=self.config.verify_url_template,
				)
			except RowRenderError as error:
				result.failures.append(RowFailure(index=index, filename=filename, message=str(error)))
				if verbose:
					print()
					print(f"Row {index + 1} failed ({filename}): {error}")
			else:
				try:
					writer.add(filename, document)
				except Exception as error:
					raise PackagingError(f"Cannot add {filename} to archive: {error}") from error
				used_names.add(filename.lower())
				result.entries.append(filename)
				result.succeeded += 1
			if progress is not None:
				progress(index + 1)
			if verbose:
				print_progress("Certificates", index + 1, total)
		if verbose:
			print()
		return True


#============================================
def write_manifest(
	manifest_path: pathlib.Path,
	inputs: dict[str, str],
	mapping: dict[str, str],
	result: BatchResult,
	layout: LayoutModel,
	config: BatchConfig,
) -> None:
	"""
	Write a manifest JSON file.

	Args:
		manifest_path: Output path.
		inputs: Input file paths by role.
		mapping: Field key to column mapping.
		result: Batch result.
		layout: Layout used for the run.
		config: Batch configuration.
	"""
	data = {
		"inputs": inputs,
		"mapping": mapping,
		"archive_name": result.archive_name,
		"total_rows": result.total,
		"succeeded": result.succeeded,
		"failed": result.failed,
		"cancelled": result.cancelled,
		"entries": result.entries,
		"failures": [dataclasses.asdict(failure) for failure in result.failures],
		"layout": cforge.layout.layout_to_dict(layout),
		"design_width": config.design_width,
		"verify_url_template": config.verify_url_template,
	}
	with manifest_path.open("w", encoding="utf-8") as handle:
		json.dump(data, handle, indent=2, sort_keys=True)
