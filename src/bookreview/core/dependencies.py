from fastapi import Request

from bookreview.exceptions.rules import TrustLevel


async def privileged_request(request: Request) -> TrustLevel:
    # Marks admin-dashboard routes: errors on this request are classified for operators.
    # Who may reach these routes is decided by the auth service, not here.
    request.state.trust_level = TrustLevel.PRIVILEGED
    return TrustLevel.PRIVILEGED
