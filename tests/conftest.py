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

"""Pytest configuration and fixtures for virtsession tests."""

import uuid

import libvirt
import pytest
from lxml import etree
from lxml.builder import E

from fakevirt import FakeHypervisor
from virtsession import ConnectionMode, Session


def _tostring(element: etree._Element) -> str:
    return etree.tostring(element, encoding='unicode')


@pytest.fixture
def hypervisor(monkeypatch):
    """In-memory hypervisor behind libvirt.open and libvirt.openReadOnly."""
    hv = FakeHypervisor()
    monkeypatch.setattr(libvirt, 'open', hv.open)
    monkeypatch.setattr(libvirt, 'openReadOnly', hv.open_read_only)
    return hv


@pytest.fixture
def session(hypervisor):
    """Read-write session, closed on teardown."""
    sess = Session.open('test:///default')
    yield sess
    while not sess.is_released():
        sess.close()


@pytest.fixture
def readonly_session(hypervisor):
    """Read-only session to the same hypervisor."""
    sess = Session.open('test:///default', ConnectionMode.READ_ONLY)
    yield sess
    while not sess.is_released():
        sess.close()


@pytest.fixture
def domain_xml():
    """Return factory building minimal domain XML description."""

    def make(name: str = 'vm1', domain_uuid: str | None = None) -> str:
        return _tostring(
            E.domain(
                E.name(name),
                E.uuid(domain_uuid or str(uuid.uuid4())),
                E.memory('524288', unit='KiB'),
                E.vcpu('1'),
                E.os(E.type('hvm', arch='x86_64')),
                type='test',
            )
        )

    return make


@pytest.fixture
def secret_xml():
    """Return factory building volume secret XML description."""

    def make(
        usage_id: str = '/var/lib/libvirt/images/vm1.qcow2',
        secret_uuid: str | None = None,
        *,
        private: bool = False,
    ) -> str:
        return _tostring(
            E.secret(
                E.uuid(secret_uuid or str(uuid.uuid4())),
                E.usage(E.volume(usage_id), type='volume'),
                ephemeral='no',
                private='yes' if private else 'no',
            )
        )

    return make


@pytest.fixture
def pool_xml():
    """Return factory building directory pool XML description."""

    def make(name: str = 'images', path: str | None = None) -> str:
        return _tostring(
            E.pool(
                E.name(name),
                E.uuid(str(uuid.uuid4())),
                E.target(E.path(path or f'/var/lib/virtsession/{name}')),
                type='dir',
            )
        )

    return make


@pytest.fixture
def snapshot_xml():
    """Return factory building snapshot XML description."""

    def make(name: str) -> str:
        return _tostring(
            E.domainsnapshot(E.name(name), E.description(f'{name} state'))
        )

    return make


@pytest.fixture
def domain(session, domain_xml):
    """Defined (persistent, inactive) domain."""
    dom = session.define_domain(domain_xml('vm1'))
    yield dom
    while not dom.is_released():
        dom.free()


@pytest.fixture
def pool(session, pool_xml):
    """Defined, inactive storage pool."""
    sp = session.define_storage_pool(pool_xml('images'))
    yield sp
    while not sp.is_released():
        sp.free()
