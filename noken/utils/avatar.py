from urllib.parse import quote


def generate_default_avatar_url(first_name, last_name, fallback: str = "") -> str:
    name = f"{first_name or ''} {last_name or ''}".strip() or fallback
    return f"https://ui-avatars.com/api/?name={quote(name)}&background=0D8ABC&color=fff&size=128"
