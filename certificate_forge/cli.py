"""
CLI entry points for batch certificate generation.
"""

# Standard Library
import argparse
import csv
import pathlib
import time

# local repo modules
import certificate_forge as cforge
import certificate_forge.config
import certificate_forge.errors
import certificate_forge.layout
import certificate_forge.pipeline
import certificate_forge.preview
import certificate_forge.template
import certificate_forge.transform


BatchConfig = cforge.config.BatchConfig
DESIGN_WIDTH = cforge.config.DESIGN_WIDTH
PREVIEW_WIDTH = cforge.config.PREVIEW_WIDTH
DEFAULT_ARCHIVE_NAME = cforge.config.DEFAULT_ARCHIVE_NAME


#============================================
def read_csv_rows(path: pathlib.Path) -> list[dict[str, str]]:
	"""
	Read a CSV file into rows of strings.

	Args:
		path: CSV path.

	Returns:
		Rows keyed by header name.
	"""
	rows: list[dict[str, str]] = []
	with path.open("r", encoding="utf-8-sig", newline="") as handle:
		reader = csv.DictReader(handle)
		for record in reader:
			row = {}
			for key, value in record.items():
				if key is None:
					continue
				row[key.strip()] = "" if value is None else str(value)
			rows.append(row)
	return rows


#============================================
def parse_mapping(values: list[str]) -> dict[str, str]:
	"""
	Parse key=Column mapping arguments.

	Args:
		values: Strings like "name=Full Name".

	Returns:
		Field key to column mapping.
	"""
	mapping: dict[str, str] = {}
	for value in values:
		if "=" not in value:
			raise ValueError(f"Mapping must look like key=Column: {value}")
		key, column = value.split("=", 1)
		mapping[key.strip()] = column.strip()
	return mapping


#============================================
def build_config(args: argparse.Namespace) -> BatchConfig:
	"""
	Build batch config from CLI args.

	Args:
		args: Parsed argparse namespace.

	Returns:
		BatchConfig.
	"""
	return BatchConfig(
		design_width=args.design_width,
		font_dir=args.font_dir,
		spool_max_size=args.spool_max_size,
		archive_name=pathlib.Path(args.output_path).name,
		verbose=True,
	)


#============================================
def parse_args() -> argparse.Namespace:
	"""
	Parse command line arguments.

	Returns:
		Parsed argparse namespace.
	"""
	parser = argparse.ArgumentParser(description="Render one certificate per CSV row onto a template.")
	parser.add_argument("template", nargs="?", help="Template PDF, PNG or JPEG.")
	parser.add_argument("data", nargs="?", help="CSV file, one certificate per row.")

	output_group = parser.add_argument_group("Output")
	output_group.add_argument("-o", "--output", dest="output_path", default=DEFAULT_ARCHIVE_NAME, help="Output ZIP path.")
	output_group.add_argument("-j", "--manifest", dest="manifest_path", default=None, help="Output manifest JSON path.")
	output_group.add_argument("-v", "--preview", dest="preview_path", default=None, help="Write a preview PNG of the first row.")
	output_group.add_argument("-w", "--preview-width", dest="preview_width", type=int, default=PREVIEW_WIDTH, help="Preview width in pixels.")

	layout_group = parser.add_argument_group("Layout")
	layout_group.add_argument("-L", "--layout", dest="layout_path", default=None, help="Layout JSON file.")
	layout_group.add_argument("-m", "--map", dest="mappings", action="append", default=[], help="Field mapping key=Column (repeatable).")
	layout_group.add_argument("-q", "--qr", dest="qr", action="store_true", help="Add the verification QR code.")
	layout_group.add_argument("-Q", "--no-qr", dest="qr", action="store_false", help="Omit the verification QR code.")
	layout_group.add_argument("-f", "--font-dir", dest="font_dir", default=None, help="Directory of .ttf font files.")
	layout_group.add_argument("-d", "--design-width", dest="design_width", type=float, default=DESIGN_WIDTH, help="Design space width.")
	layout_group.add_argument(
		"--write-default-layout",
		dest="default_layout_path",
		default=None,
		help="Write the default layout JSON to this path and exit.",
	)

	limit_group = parser.add_argument_group("Limits")
	limit_group.add_argument(
		"-s",
		"--spool-max-size",
		dest="spool_max_size",
		type=int,
		default=None,
		help="Spool the archive to disk once it exceeds this many bytes.",
	)

	parser.set_defaults(qr=None)

	args = parser.parse_args()
	return args


#============================================
def run_pipeline(args: argparse.Namespace) -> None:
	"""
	Run the full pipeline from CSV input to the ZIP archive.

	Args:
		args: Parsed argparse namespace.
	"""
	if args.default_layout_path:
		cforge.layout.save_layout(cforge.layout.default_layout(), pathlib.Path(args.default_layout_path))
		print(f"Default layout written: {args.default_layout_path}")
		return

	if not args.template or not args.data:
		raise cforge.errors.ConfigurationError("Both a template and a data file are required")

	print("Certificate batch pipeline")
	print(f"Template: {args.template}")
	print(f"Data: {args.data}")
	print(f"Output ZIP: {args.output_path}")

	start_time = time.perf_counter()
	template_path = pathlib.Path(args.template)
	content_type = cforge.template.guess_content_type(template_path)
	template = cforge.template.read_template_file(template_path)

	layout = cforge.layout.default_layout()
	if args.layout_path:
		layout = cforge.layout.load_layout(pathlib.Path(args.layout_path))
		print(f"Layout: {args.layout_path}")
	if args.qr is not None:
		layout = cforge.layout.set_mark_enabled(layout, args.qr)
	print(f"Verification QR: {layout.mark.enabled}")

	mapping = parse_mapping(args.mappings)
	missing = cforge.config.missing_required_mappings(mapping)
	if missing:
		raise cforge.errors.ConfigurationError(f"Missing required mapping: {', '.join(missing)}")
	for key, column in sorted(mapping.items()):
		print(f"Mapping: {key} -> {column}")

	rows = read_csv_rows(pathlib.Path(args.data))
	print(f"Rows loaded: {len(rows)}")

	config = build_config(args)
	if args.preview_path:
		space = cforge.transform.DesignSpace.for_page(template.page_width, template.page_height, config.design_width)
		image = cforge.preview.render_preview(
			layout,
			space,
			args.preview_width,
			template=template,
			sample_row=rows[0] if rows else None,
			mapping=mapping,
		)
		image.save(args.preview_path)
		print(f"Preview written: {args.preview_path}")

	render_start = time.perf_counter()
	pipeline = cforge.pipeline.BatchPipeline(config)
	result = pipeline.run(template.data, content_type, layout, rows, mapping)
	render_end = time.perf_counter()

	output_path = pathlib.Path(args.output_path)
	output_path.write_bytes(pipeline.take_archive())
	for failure in result.failures:
		print(f"Failed row {failure.index + 1}: {failure.message}")

	manifest_path = args.manifest_path
	if manifest_path is None:
		manifest_path = f"{output_path}.json"
	cforge.pipeline.write_manifest(
		pathlib.Path(manifest_path),
		{"template": str(template_path), "data": str(args.data)},
		mapping,
		result,
		layout,
		config,
	)

	total_time = time.perf_counter() - start_time
	print(
		"Timing: render={:.2f}s total={:.2f}s".format(
			render_end - render_start,
			total_time,
		)
	)
	print(f"Archive written: {output_path}")
	print(f"Manifest written: {manifest_path}")


#============================================
def main() -> None:
	"""
	Main entry point.
	"""
	args = parse_args()
	run_pipeline(args)
