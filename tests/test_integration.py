# This file is part of Virtsession
#
# Virtsession is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# Virtsession is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with Virtsession.  If not, see <http://www.gnu.org/licenses/>.

"""
Tests against libvirt test driver.

``test:///default`` runs inside the client library and needs no daemon.
Its state is shared by all connections of the process, so every test
uses unique names. Tests are skipped if libvirt cannot open the driver.
"""

import uuid

import libvirt
import pytest

from virtsession import (
    DomainCreateFlag,
    ErrorCode,
    InvalidArgumentError,
    NotFoundError,
    Session,
    SnapshotDeleteFlag,
    SnapshotListFlag,
    StoragePoolListFlag,
    StoragePoolState,
    UnsupportedOperationError,
)

TEST_URI = 'test:///default'


def unique(prefix: str) -> str:
    return f'{prefix}-{uuid.uuid4().hex[:8]}'


@pytest.fixture
def live_session():
    """Session to libvirt test driver, not to the in-memory fake."""
    try:
        conn = libvirt.open(TEST_URI)
    except libvirt.libvirtError as e:
        pytest.skip(f'libvirt test driver unavailable: {e}')
    session = Session.open(TEST_URI)
    conn.close()
    yield session
    while not session.is_released():
        session.close()


@pytest.fixture
def live_domain(live_session, domain_xml):
    """Defined domain with unique name, undefined on teardown."""
    name = unique('vsn')
    domain = live_session.define_domain(domain_xml(name))
    yield domain
    if not domain.is_released():
        if domain.is_active():
            domain.destroy()
        if domain.is_persistent():
            for snap in domain.list_snapshots(SnapshotListFlag.ROOTS):
                with snap:
                    snap.delete(SnapshotDeleteFlag.CHILDREN)
            domain.undefine()
        domain.free()


class TestDomainLifecycle:
    """Domain state matrix on real driver."""

    def test_define_create_destroy_undefine(self, live_session, live_domain):
        """Test persistent domain walks through all states."""
        name = live_domain.name()
        assert live_domain.is_persistent()
        assert not live_domain.is_active()
        with pytest.raises(UnsupportedOperationError):
            live_domain.id()

        live_domain.create()
        assert live_domain.is_active()
        assert live_domain.is_persistent()
        domain_id = live_domain.id()
        assert domain_id > 0

        live_domain.destroy()
        assert not live_domain.is_active()
        assert live_domain.is_persistent()

        live_domain.undefine()
        assert not live_domain.is_active()
        assert not live_domain.is_persistent()
        with pytest.raises(NotFoundError) as excinfo:
            live_session.lookup_domain_by_name(name)
        assert excinfo.value.code is ErrorCode.NO_DOMAIN

    def test_undefine_running(self, live_domain):
        """Test running domain becomes transient when undefined."""
        live_domain.create()
        live_domain.undefine()
        assert live_domain.is_active()
        assert not live_domain.is_persistent()
        live_domain.destroy()
        assert not live_domain.is_active()

    def test_transient(self, live_session, domain_xml):
        """Test transient domain disappears on destroy."""
        name = unique('vsn')
        with live_session.create_domain(domain_xml(name)) as domain:
            assert domain.is_active()
            assert not domain.is_persistent()
            domain.destroy()
            assert not domain.is_active()
        with pytest.raises(NotFoundError):
            live_session.lookup_domain_by_name(name)

    def test_lookups(self, live_session, live_domain):
        """Test lookups by name, UUID and ID agree."""
        live_domain.create()
        name = live_domain.name()
        domain_uuid = live_domain.uuid()
        with live_session.lookup_domain_by_name(name) as dom:
            assert dom.uuid() == domain_uuid
        with live_session.lookup_domain_by_uuid(domain_uuid) as dom:
            assert dom.name() == name
        with live_session.lookup_domain_by_id(live_domain.id()) as dom:
            assert dom.name() == name
        with pytest.raises(NotFoundError):
            live_session.lookup_domain_by_uuid(uuid.uuid4())

    def test_unsupported_flags(self, live_domain):
        """Test unknown flags are rejected and domain stays inactive."""
        with pytest.raises(InvalidArgumentError):
            live_domain.create(DomainCreateFlag.START_PAUSED | 1 << 20)
        assert not live_domain.is_active()


class TestStoragePools:
    """Storage pools on real driver."""

    def test_capacity_invariant(self, live_session):
        """Test running pools report consistent usage."""
        pools = live_session.list_storage_pools(StoragePoolListFlag.ACTIVE)
        if not pools:
            pytest.skip('test driver has no running pools')
        for pool in pools:
            with pool:
                assert pool.info_state() is StoragePoolState.RUNNING
                usage = pool.get_usage_info()
                assert usage.allocation + usage.available == usage.capacity

    def test_lifecycle(self, live_session, pool_xml):
        """Test defined pool can be started, stopped and undefined."""
        name = unique('vsn-pool')
        with live_session.define_storage_pool(pool_xml(name)) as pool:
            assert not pool.is_active()
            with pytest.raises(UnsupportedOperationError):
                pool.refresh()
            pool.create()
            assert pool.is_active()
            usage = pool.get_usage_info()
            assert usage.allocation + usage.available == usage.capacity
            pool.destroy()
            pool.undefine()
        with pytest.raises(NotFoundError) as excinfo:
            live_session.lookup_storage_pool_by_name(name)
        assert excinfo.value.code is ErrorCode.NO_STORAGE_POOL


class TestSnapshots:
    """Domain snapshots on real driver."""

    def test_root_has_no_parent(self, live_domain, snapshot_xml):
        """Test parent of root snapshot is not found."""
        with live_domain.create_snapshot(snapshot_xml('root')) as root:
            with pytest.raises(NotFoundError) as excinfo:
                root.parent()
            assert excinfo.value.code is ErrorCode.NO_DOMAIN_SNAPSHOT

    def test_descendants(self, live_domain, snapshot_xml):
        """Test descendants of root with one child."""
        with live_domain.create_snapshot(snapshot_xml('root')) as root:
            with live_domain.create_snapshot(snapshot_xml('child')) as child:
                with child.parent() as parent:
                    assert parent.name() == 'root'
                children = root.list_children(SnapshotListFlag.DESCENDANTS)
                assert [c.name() for c in children] == ['child']
                for c in children:
                    c.free()
