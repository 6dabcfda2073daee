import anyio
import pytest

from application.services import admin_service as admin_service_module
from application.services.admin_service import AdminApplicationService
from application.services.session_service import SessionTokenService
from domain.common.exceptions import InvalidCredentialsException


@pytest.fixture
def service(uow_factory):
    return AdminApplicationService(uow_factory, SessionTokenService(uow_factory))


@pytest.fixture
def offloaded(monkeypatch):
    """记录经 anyio 工作线程执行的函数名"""
    names = []
    original = anyio.to_thread.run_sync

    async def recording_run_sync(fn, *args, **kwargs):
        names.append(fn.__name__)
        return await original(fn, *args, **kwargs)

    monkeypatch.setattr(admin_service_module.anyio.to_thread, "run_sync", recording_run_sync)
    return names


@pytest.mark.asyncio
async def test_password_hashing_runs_in_worker_thread(service, offloaded):
    user = await service.create_account("admin", "s3cret-pass")
    assert offloaded == ["hash_password"]

    verified = await service.verify_credentials("admin", "s3cret-pass")

    assert verified.id == user.id
    assert offloaded == ["hash_password", "verify_password"]


@pytest.mark.asyncio
async def test_bad_password_checked_in_worker_thread(service, offloaded):
    await service.create_account("admin", "s3cret-pass")

    with pytest.raises(InvalidCredentialsException):
        await service.verify_credentials("admin", "wrong-pass")
    assert offloaded == ["hash_password", "verify_password"]


@pytest.mark.asyncio
async def test_unknown_user_still_hashes_in_worker_thread(service, offloaded):
    with pytest.raises(InvalidCredentialsException):
        await service.verify_credentials("nobody", "whatever")
    assert offloaded == ["verify_password"]
