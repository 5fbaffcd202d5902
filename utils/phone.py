import phonenumbers

DEFAULT_REGION = "KE"


def normalize_msisdn(value: str, region: str = DEFAULT_REGION) -> str:
    """
    Normalize a customer phone number to the MSISDN form Daraja expects.

    "0712345678", "+254712345678" and "254712345678" all become
    "254712345678". Raises ValueError for numbers that are not valid.
    """
    raw = value.strip().replace(" ", "").replace("-", "")
    if raw.startswith("254"):
        raw = "+" + raw

    try:
        parsed = phonenumbers.parse(raw, region)
    except phonenumbers.NumberParseException:
        raise ValueError('Invalid phone number')

    if not phonenumbers.is_valid_number(parsed):
        raise ValueError('Invalid phone number')

    return phonenumbers.format_number(parsed, phonenumbers.PhoneNumberFormat.E164).lstrip("+")
