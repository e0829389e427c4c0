from assessment_engine.core.security import Principal, create_access_token


def principal_of(user) -> Principal:
    return Principal(user_id=user.id, role=user.role)


def auth_headers(user) -> dict:
    token = create_access_token({"user_id": user.id, "role": user.role})
    return {"Authorization": f"Bearer {token}"}
