"""
Pytest configuration for local imports and shared template fixtures.
"""

# Standard Library
import io
import os
import sys

# PIP3 modules
import PIL.Image
import pytest
import reportlab.pdfgen.canvas

#============================================


def _ensure_repo_on_path() -> None:
	"""
	Ensure the repository root is on sys.path.
	"""
	repo_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
	if repo_root not in sys.path:
		sys.path.insert(0, repo_root)


_ensure_repo_on_path()


#============================================
def build_png_bytes(width: int, height: int, color: tuple[int, int, int] = (255, 255, 255)) -> bytes:
	"""
	Build a solid PNG image.

	Args:
		width: Width in pixels.
		height: Height in pixels.
		color: Fill color.

	Returns:
		PNG bytes.
	"""
	image = PIL.Image.new("RGB", (width, height), color)
	buffer = io.BytesIO()
	image.save(buffer, format="PNG")
	return buffer.getvalue()


#============================================
def build_pdf_bytes(width: float, height: float, caption: str = "TEMPLATE") -> bytes:
	"""
	Build a single-page PDF with one caption near the top.

	Args:
		width: Page width in points.
		height: Page height in points.
		caption: Caption text.

	Returns:
		PDF bytes.
	"""
	buffer = io.BytesIO()
	pdf = reportlab.pdfgen.canvas.Canvas(buffer, pagesize=(width, height), invariant=1)
	pdf.setFont("Helvetica", 12)
	pdf.drawString(36, height - 36, caption)
	pdf.showPage()
	pdf.save()
	return buffer.getvalue()


@pytest.fixture
def png_template_bytes() -> bytes:
	return build_png_bytes(1600, 1132)


@pytest.fixture
def pdf_template_bytes() -> bytes:
	return build_pdf_bytes(792.0, 612.0)


@pytest.fixture
def design_png_template_bytes() -> bytes:
	"""
	Template whose pixel size equals the default design space.
	"""
	return build_png_bytes(800, 566)
