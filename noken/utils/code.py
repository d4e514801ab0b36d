import secrets


def generate_verification_code(length: int = 6) -> str:
    """Code numérique à `length` chiffres (zéros de tête possibles)."""
    return "".join(secrets.choice("0123456789") for _ in range(length))


def generate_reset_token() -> str:
    return secrets.token_hex(32)
