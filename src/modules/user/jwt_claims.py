def extract_user_data_from_jwt(payload: dict) -> dict:
    """Extract user data from JWT claims for database sync."""
    user_metadata = payload.get("user_metadata") or {}

    email = payload.get("email") or user_metadata.get("email")

    return {
        "auth_user_id": payload.get("sub", ""),
        "email": email or None,
    }
