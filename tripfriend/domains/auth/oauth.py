# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Social login through Google, Kakao and Naver.

The flow is the OAuth 2.0 authorization code grant:

1. ``begin`` records a random state under ``oauth_state:{state}`` and
   returns the provider's authorization URL.
2. The provider sends the browser back with ``code`` and ``state``.
3. ``complete`` consumes the state, exchanges the code for a provider
   access token, reads the profile and finds or creates the member
   linked to ``(provider, provider_id)``. A normal session is then
   opened for that member, exactly as after a password login.

Example:
    >>> client = OAuthClient(settings.oauth)
    >>> login = SocialLoginService(client, backend, member_service, auth_service)
    >>> url = await login.begin("kakao")
    >>> result = await login.complete("kakao", code, state)
"""

import secrets
from typing import Any

import httpx
from pydantic import BaseModel

from tripfriend.core.config import OAuthSettings
from tripfriend.domains.auth.credential_store import KeyValueBackend
from tripfriend.domains.auth.exceptions import SocialLoginError, UnknownProviderError
from tripfriend.domains.auth.service import AuthService, LoginResult
from tripfriend.domains.member.service import MemberService
from tripfriend.utils.logging import get_logger

logger = get_logger(__name__)

OAUTH_STATE_PREFIX = "oauth_state:"


class OAuthProvider(BaseModel):
    """Endpoints of one authorization server."""

    name: str
    authorize_url: str
    token_url: str
    userinfo_url: str
    scope: str | None = None
    # Naver checks the state again on the token request
    state_in_token_request: bool = False


PROVIDERS: dict[str, OAuthProvider] = {
    "google": OAuthProvider(
        name="google",
        authorize_url="https://accounts.google.com/o/oauth2/v2/auth",
        token_url="https://oauth2.googleapis.com/token",
        userinfo_url="https://openidconnect.googleapis.com/v1/userinfo",
        scope="openid email",
    ),
    "kakao": OAuthProvider(
        name="kakao",
        authorize_url="https://kauth.kakao.com/oauth/authorize",
        token_url="https://kauth.kakao.com/oauth/token",
        userinfo_url="https://kapi.kakao.com/v2/user/me",
        scope="account_email",
    ),
    "naver": OAuthProvider(
        name="naver",
        authorize_url="https://nid.naver.com/oauth2.0/authorize",
        token_url="https://nid.naver.com/oauth2.0/token",
        userinfo_url="https://openapi.naver.com/v1/nid/me",
        state_in_token_request=True,
    ),
}


class OAuthIdentity(BaseModel):
    """The part of a provider profile a member account is built from.

    Attributes:
        provider: Provider name.
        provider_id: Stable account id at the provider.
        email: Email address, if the member allowed sharing it.
    """

    provider: str
    provider_id: str
    email: str | None = None


def parse_userinfo(provider: str, payload: dict[str, Any]) -> OAuthIdentity:
    """Read the account id and email from a provider's profile response.

    Args:
        provider: Provider name.
        payload: Decoded profile response.

    Returns:
        OAuthIdentity for the account.

    Raises:
        SocialLoginError: If the profile carries no account id.
    """
    if provider == "kakao":
        account = payload.get("kakao_account") or {}
        provider_id, email = payload.get("id"), account.get("email")
    elif provider == "naver":
        profile = payload.get("response") or {}
        provider_id, email = profile.get("id"), profile.get("email")
    else:
        provider_id, email = payload.get("sub") or payload.get("id"), payload.get("email")

    if provider_id is None or str(provider_id) == "":
        logger.warning("Profile without account id from %s", provider)
        raise SocialLoginError("Login provider returned no account id")

    return OAuthIdentity(provider=provider, provider_id=str(provider_id), email=email or None)


class OAuthClient:
    """HTTP client for the authorization servers.

    Attributes:
        _settings: Social login settings.
        _http_client: Shared HTTP client; a short-lived one is opened per
            call when omitted.
    """

    def __init__(
        self,
        settings: OAuthSettings,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings
        self._http_client = http_client

    def provider(self, name: str) -> OAuthProvider:
        """Look up an enabled provider.

        Raises:
            UnknownProviderError: If the provider is unknown or has no
                credentials configured.
        """
        provider = PROVIDERS.get(name)
        if provider is None or self._settings.credentials(name) is None:
            raise UnknownProviderError(f"Login provider {name} is not available")
        return provider

    def redirect_uri(self, name: str) -> str:
        return f"{self._settings.callback_base_url.rstrip('/')}/{name}/callback"

    def authorization_url(self, name: str, state: str) -> str:
        """Build the URL the browser is sent to for consent."""
        provider = self.provider(name)
        client_id, _ = self._settings.credentials(name)

        params = {
            "response_type": "code",
            "client_id": client_id,
            "redirect_uri": self.redirect_uri(name),
            "state": state,
        }
        if provider.scope:
            params["scope"] = provider.scope

        return str(httpx.URL(provider.authorize_url, params=params))

    async def fetch_identity(self, name: str, code: str, state: str) -> OAuthIdentity:
        """Exchange an authorization code and read the account profile.

        Args:
            name: Provider name.
            code: Authorization code from the callback.
            state: State from the callback.

        Returns:
            OAuthIdentity of the account that granted consent.

        Raises:
            UnknownProviderError: If the provider is not available.
            SocialLoginError: If the provider rejects the code or answers
                with something unusable.
        """
        provider = self.provider(name)

        if self._http_client is not None:
            return await self._fetch_identity(self._http_client, provider, code, state)

        async with httpx.AsyncClient(
            timeout=self._settings.http_timeout_seconds,
            follow_redirects=False,
        ) as client:
            return await self._fetch_identity(client, provider, code, state)

    async def _fetch_identity(
        self,
        client: httpx.AsyncClient,
        provider: OAuthProvider,
        code: str,
        state: str,
    ) -> OAuthIdentity:
        client_id, client_secret = self._settings.credentials(provider.name)
        token_data = {
            "grant_type": "authorization_code",
            "client_id": client_id,
            "client_secret": client_secret,
            "code": code,
            "redirect_uri": self.redirect_uri(provider.name),
        }
        if provider.state_in_token_request:
            token_data["state"] = state

        try:
            token_response = await client.post(
                provider.token_url,
                data=token_data,
                headers={"Accept": "application/json"},
            )
            token_response.raise_for_status()
            token_body = token_response.json()
            access_token = token_body.get("access_token") if isinstance(token_body, dict) else None
            if not access_token:
                logger.warning("Token response without access_token from %s", provider.name)
                raise SocialLoginError("Login provider issued no access token")

            userinfo_response = await client.get(
                provider.userinfo_url,
                headers={"Authorization": f"Bearer {access_token}"},
            )
            userinfo_response.raise_for_status()
            payload = userinfo_response.json()
        except httpx.HTTPStatusError as e:
            logger.warning(
                "Provider %s answered %d for %s",
                provider.name,
                e.response.status_code,
                e.request.url,
            )
            raise SocialLoginError(f"Login provider {provider.name} rejected the request") from e
        except httpx.HTTPError as e:
            logger.error("Provider %s unreachable: %s", provider.name, str(e))
            raise SocialLoginError(f"Login provider {provider.name} is unreachable") from e
        except ValueError as e:
            raise SocialLoginError(f"Login provider {provider.name} sent malformed JSON") from e

        if not isinstance(payload, dict):
            raise SocialLoginError(f"Login provider {provider.name} sent an unexpected profile")

        return parse_userinfo(provider.name, payload)


class SocialLoginService:
    """Drives the authorization code flow and opens the session.

    Attributes:
        _client: Authorization server client.
        _backend: Key-value backend holding pending states.
        _member_service: Finds or creates the linked member.
        _auth_service: Opens the session.
        _state_ttl_seconds: Lifetime of a pending state.
    """

    def __init__(
        self,
        client: OAuthClient,
        backend: KeyValueBackend,
        member_service: MemberService,
        auth_service: AuthService,
        state_ttl_seconds: int = 600,
    ) -> None:
        self._client = client
        self._backend = backend
        self._member_service = member_service
        self._auth_service = auth_service
        self._state_ttl_seconds = state_ttl_seconds

    async def begin(self, provider: str) -> str:
        """Record a fresh state and return the authorization URL.

        Raises:
            UnknownProviderError: If the provider is not available.
        """
        self._client.provider(provider)

        state = secrets.token_urlsafe(24)
        await self._backend.set(
            OAUTH_STATE_PREFIX + state,
            provider,
            expire_seconds=self._state_ttl_seconds,
        )
        return self._client.authorization_url(provider, state)

    async def complete(self, provider: str, code: str, state: str) -> LoginResult:
        """Finish a social login and open a session.

        The state is single-use and must have been issued for the same
        provider.

        Args:
            provider: Provider name from the callback path.
            code: Authorization code.
            state: State echoed back by the provider.

        Returns:
            LoginResult with the new token pair.

        Raises:
            SocialLoginError: If the state is unknown, expired or was
                issued for another provider, or the provider exchange fails.
            AccountPermanentlyDeletedError: If the linked account is past
                its restore window.
        """
        key = OAUTH_STATE_PREFIX + state
        pending = await self._backend.get(key)
        if pending is None or pending != provider:
            logger.warning("Social login with unknown state: provider=%s", provider)
            raise SocialLoginError("Login state is invalid or expired")
        await self._backend.delete(key)

        identity = await self._client.fetch_identity(provider, code, state)
        member = await self._member_service.find_or_create_social_member(
            identity.provider,
            identity.provider_id,
            identity.email,
        )

        logger.info("Social login: provider=%s, username=%s", provider, member.username)

        return await self._auth_service.login_member(member)
