"""
Command line helpers and an end-to-end run.
"""

# Standard Library
import sys
import zipfile

# PIP3 modules
import pytest

# local repo modules
import certificate_forge.cli
import certificate_forge.errors
import certificate_forge.layout


#============================================
def test_parse_mapping() -> None:
	mapping = certificate_forge.cli.parse_mapping(["name=Full Name", " id = Serial "])
	assert mapping == {"name": "Full Name", "id": "Serial"}
	with pytest.raises(ValueError):
		certificate_forge.cli.parse_mapping(["name"])


#============================================
def test_read_csv_rows(tmp_path) -> None:
	path = tmp_path / "rows.csv"
	path.write_text("\ufeffName, Event\nAda,Engines\nGrace\n", encoding="utf-8")
	rows = certificate_forge.cli.read_csv_rows(path)
	assert rows == [{"Name": "Ada", "Event": "Engines"}, {"Name": "Grace", "Event": ""}]


#============================================
def test_cli_end_to_end(tmp_path, monkeypatch, png_template_bytes) -> None:
	"""
	Template plus CSV gives an archive, a manifest and a preview.
	"""
	template_path = tmp_path / "template.png"
	template_path.write_bytes(png_template_bytes)
	data_path = tmp_path / "rows.csv"
	data_path.write_text("Name,Event\nAda,Engines\nGrace,Compilers\n", encoding="utf-8")
	output_path = tmp_path / "out.zip"
	preview_path = tmp_path / "preview.png"
	argv = [
		"forge_certificates.py",
		str(template_path),
		str(data_path),
		"-o",
		str(output_path),
		"-v",
		str(preview_path),
		"-m",
		"name=Name",
		"-m",
		"event=Event",
		"-q",
	]
	monkeypatch.setattr(sys, "argv", argv)
	certificate_forge.cli.main()
	assert zipfile.ZipFile(output_path).namelist() == ["Ada.pdf", "Grace.pdf"]
	assert (tmp_path / "out.zip.json").is_file()
	assert preview_path.is_file()


#============================================
def test_cli_requires_name_mapping(tmp_path, monkeypatch, png_template_bytes) -> None:
	template_path = tmp_path / "template.png"
	template_path.write_bytes(png_template_bytes)
	data_path = tmp_path / "rows.csv"
	data_path.write_text("Name\nAda\n", encoding="utf-8")
	monkeypatch.setattr(sys, "argv", ["forge_certificates.py", str(template_path), str(data_path)])
	with pytest.raises(certificate_forge.errors.ConfigurationError):
		certificate_forge.cli.main()


#============================================
def test_cli_writes_default_layout(tmp_path, monkeypatch) -> None:
	path = tmp_path / "layout.json"
	monkeypatch.setattr(sys, "argv", ["forge_certificates.py", "--write-default-layout", str(path)])
	certificate_forge.cli.main()
	assert certificate_forge.layout.load_layout(path) == certificate_forge.layout.default_layout()


#============================================
def test_cli_missing_template(tmp_path, monkeypatch) -> None:
	data_path = tmp_path / "rows.csv"
	data_path.write_text("Name\nAda\n", encoding="utf-8")
	argv = ["forge_certificates.py", str(tmp_path / "missing.png"), str(data_path), "-m", "name=Name"]
	monkeypatch.setattr(sys, "argv", argv)
	with pytest.raises(certificate_forge.errors.ConfigurationError):
		certificate_forge.cli.main()
