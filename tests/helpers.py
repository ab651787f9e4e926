U1 = "11111111-1111-1111-1111-111111111111"
U2 = "22222222-2222-2222-2222-222222222222"
U3 = "33333333-3333-3333-3333-333333333333"


def auth(token: str = "token-u1") -> dict:
    return {"Authorization": f"Bearer {token}"}
