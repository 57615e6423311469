from modules.auth import (
    IAuthService,
    IIdentityProvider,
    ISessionRepository,
    InMemorySessionRepository,
)
from modules.auth.identity import SupabaseIdentityProvider
from modules.auth.service import AuthService
from tests.conftest import FakeIdentityProvider


class TestAuthInterfaces:
    def test_auth_service_implements_interface(self):
        assert isinstance(AuthService(), IAuthService)

    def test_identity_providers_implement_interface(self):
        assert isinstance(SupabaseIdentityProvider(), IIdentityProvider)
        assert isinstance(FakeIdentityProvider(), IIdentityProvider)

    def test_session_repository_implements_interface(self):
        assert isinstance(InMemorySessionRepository(), ISessionRepository)

    def test_identity_provider_methods(self):
        for method in ["sign_up", "sign_in", "sign_out"]:
            assert hasattr(IIdentityProvider, method)
