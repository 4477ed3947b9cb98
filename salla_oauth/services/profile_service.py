"""
Profile retrieval from the Salla user-info endpoint.
"""
import httpx
import structlog

from salla_oauth.exceptions import MalformedResponseError, ProfileFetchError, TransportError
from salla_oauth.models.profile import UserProfile
from salla_oauth.services.http_client import parse_json_object, send

logger = structlog.get_logger()


class ProfileService:
    """Fetches the signed-in merchant's user object."""

    def __init__(self, user_profile_url: str, http_client: httpx.AsyncClient):
        self.user_profile_url = user_profile_url
        self.http = http_client

    async def fetch_profile(self, access_token: str) -> UserProfile:
        """
        Return the ``data`` object of the user-info response.

        Raises:
            ProfileFetchError: Provider unreachable or non-2xx response
            MalformedResponseError: Body is not JSON, or ``data`` is not an object
        """
        try:
            response = await send(
                self.http,
                "GET",
                self.user_profile_url,
                headers={
                    "Authorization": f"Bearer {access_token}",
                    "Accept": "application/json",
                },
            )
        except TransportError as exc:
            raise ProfileFetchError(f"Failed to fetch user from Salla: {exc}") from exc

        if not response.is_success:
            logger.error("profile_fetch_failed", status_code=response.status_code)
            raise ProfileFetchError(
                f"Failed to fetch user from Salla: status {response.status_code}",
                status_code=response.status_code,
            )

        payload = parse_json_object(response)

        if "data" not in payload:
            logger.warning("profile_missing_data", keys=sorted(payload))
            return UserProfile()

        data = payload["data"]
        if not isinstance(data, dict):
            raise MalformedResponseError(
                f"Profile data must be an object, got {type(data).__name__}",
                body=response.text[:500],
            )

        profile = UserProfile.model_validate(data)
        logger.info("profile_fetched", user_id=profile.id)
        return profile
