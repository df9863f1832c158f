import pytest


@pytest.fixture
def guest(django_user_model):
    return django_user_model.objects.create_user(
        username="guest", email="guest@example.com", password="GuestPass123"
    )


@pytest.fixture
def host(django_user_model):
    return django_user_model.objects.create_user(
        username="host", email="host@example.com", password="HostPass123"
    )
