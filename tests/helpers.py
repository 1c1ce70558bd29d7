PASSWORD = "Abcd1234"


def register_payload(email="a@x.com", password=PASSWORD, **overrides):
    payload = {
        "email": email,
        "password": password,
        "confirmPassword": password,
        "firstName": "A",
        "lastName": "B",
    }
    payload.update(overrides)
    return payload


def bearer(token):
    return {"Authorization": f"Bearer {token}"}
