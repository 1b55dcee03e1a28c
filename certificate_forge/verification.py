"""
Per-row identifiers and their scannable verification codes.
"""

# Standard Library
import io
import urllib.parse

# PIP3 modules
import PIL.Image
import qrcode
import qrcode.constants

# local repo modules
import certificate_forge as cforge
import certificate_forge.config
import certificate_forge.errors


QR_BOX_SIZE = cforge.config.QR_BOX_SIZE
QR_BORDER = cforge.config.QR_BORDER
VERIFY_URL_TEMPLATE = cforge.config.VERIFY_URL_TEMPLATE
ID_FIELD_KEY = cforge.config.ID_FIELD_KEY
FALLBACK_ID_PREFIX = cforge.config.FALLBACK_ID_PREFIX
EncodingError = cforge.errors.EncodingError


#============================================
def cell_text(row: dict, column: str | None) -> str:
	"""
	Read a cell as text.

	Args:
		row: Dataset row.
		column: Column name or None.

	Returns:
		Cell value as a string, empty when unmapped or missing.
	"""
	if not column:
		return ""
	value = row.get(column)
	if value is None:
		return ""
	return str(value)


#============================================
def row_identifier(row: dict, mapping: dict[str, str], row_index: int) -> str:
	"""
	Derive the identifier encoded into a row's verification mark.

	Args:
		row: Dataset row.
		mapping: Field key to column mapping.
		row_index: 0-based row index.

	Returns:
		Mapped id value, or CERT-<row_index + 1>.
	"""
	value = cell_text(row, mapping.get(ID_FIELD_KEY)).strip()
	if value:
		return value
	return f"{FALLBACK_ID_PREFIX}-{row_index + 1}"


#============================================
def verification_url(identifier: str, url_template: str = VERIFY_URL_TEMPLATE) -> str:
	segment = urllib.parse.quote(identifier, safe="")
	return url_template.format(identifier=segment)


#============================================
def encode_verification_image(payload: str) -> PIL.Image.Image:
	"""
	Encode a payload into a QR code image.

	Encoding is deterministic: version is fitted to the payload and the
	mask pattern is chosen by the encoder's fixed scoring.

	Args:
		payload: Text to encode.

	Returns:
		RGB PIL image.
	"""
	try:
		code = qrcode.QRCode(
			version=None,
			error_correction=qrcode.constants.ERROR_CORRECT_M,
			box_size=QR_BOX_SIZE,
			border=QR_BORDER,
		)
		code.add_data(payload)
		code.make(fit=True)
		buffer = io.BytesIO()
		code.make_image().save(buffer)
	except Exception as error:
		raise EncodingError(f"Cannot encode verification code: {error}") from error
	buffer.seek(0)
	image = PIL.Image.open(buffer)
	image.load()
	return image.convert("RGB")
