"""
Row identifiers, verification URLs and QR images.
"""

# PIP3 modules
import pytest

# local repo modules
import certificate_forge.errors
import certificate_forge.verification


#============================================
def test_row_identifier_uses_mapped_column() -> None:
	row = {"Serial": "  AB-123 ", "Name": "Ada"}
	identifier = certificate_forge.verification.row_identifier(row, {"id": "Serial"}, 4)
	assert identifier == "AB-123"


#============================================
def test_row_identifier_fallback() -> None:
	"""
	Unmapped or empty identifiers fall back to the 1-based row position.
	"""
	row = {"Name": "Ada", "Serial": ""}
	assert certificate_forge.verification.row_identifier(row, {}, 0) == "CERT-1"
	assert certificate_forge.verification.row_identifier(row, {"id": "Serial"}, 2) == "CERT-3"
	assert certificate_forge.verification.row_identifier(row, {"id": "Missing"}, 9) == "CERT-10"


#============================================
def test_cell_text() -> None:
	row = {"Count": 7, "Empty": None}
	assert certificate_forge.verification.cell_text(row, "Count") == "7"
	assert certificate_forge.verification.cell_text(row, "Empty") == ""
	assert certificate_forge.verification.cell_text(row, None) == ""


#============================================
def test_verification_url() -> None:
	url = certificate_forge.verification.verification_url("CERT-1")
	assert url == "https://verify.certiforge.app/cert/CERT-1"
	url = certificate_forge.verification.verification_url("A/B 1")
	assert url == "https://verify.certiforge.app/cert/A%2FB%201"


#============================================
def test_encoding_is_deterministic() -> None:
	payload = certificate_forge.verification.verification_url("CERT-1")
	first = certificate_forge.verification.encode_verification_image(payload)
	second = certificate_forge.verification.encode_verification_image(payload)
	assert first.mode == "RGB"
	assert first.size[0] == first.size[1]
	assert first.tobytes() == second.tobytes()


#============================================
def test_distinct_identifiers_give_distinct_images() -> None:
	images = [
		certificate_forge.verification.encode_verification_image(
			certificate_forge.verification.verification_url(f"CERT-{index}")
		).tobytes()
		for index in (1, 2, 3)
	]
	assert len(set(images)) == 3


#============================================
def test_oversized_payload_raises_encoding_error() -> None:
	with pytest.raises(certificate_forge.errors.EncodingError):
		certificate_forge.verification.encode_verification_image("X" * 5000)
