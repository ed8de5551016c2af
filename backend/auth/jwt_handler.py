from datetime import datetime, timezone

import jwt


def create_access_token(claims: dict, secret_key: str, algorithm: str) -> str:
    # Session tokens carry no "exp": they stay valid until the secret rotates.
    payload = {**claims, "iat": datetime.now(timezone.utc)}
    return jwt.encode(payload, secret_key, algorithm=algorithm)


def decode_access_token(token: str, secret_key: str, algorithm: str) -> dict:
    return jwt.decode(token, secret_key, algorithms=[algorithm])
