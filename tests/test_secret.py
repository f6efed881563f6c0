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

"""Tests for secrets."""

import uuid

import pytest

from virtsession import (
    ErrorCode,
    InvalidArgumentError,
    NativeFailureError,
    NotFoundError,
    OperationDeniedError,
    SecretListFlag,
    SecretUsageType,
)


VOLUME = '/var/lib/libvirt/images/vm1.qcow2'


@pytest.fixture
def secret(session, secret_xml):
    """Volume secret without value."""
    sec = session.define_secret(secret_xml(VOLUME))
    yield sec
    while not sec.is_released():
        sec.free()


class TestDefinition:
    """Secret definition and lookups."""

    def test_define(self, secret):
        """Test usage of defined secret."""
        assert secret.usage_type() is SecretUsageType.VOLUME
        assert secret.usage_id() == VOLUME
        assert '<volume>' in secret.xml()

    def test_lookup_by_uuid(self, session, secret):
        """Test lookup by UUID."""
        with session.lookup_secret_by_uuid(secret.uuid()) as sec:
            assert sec.usage_id() == VOLUME

    def test_lookup_by_usage(self, session, secret):
        """Test lookup by usage type and ID."""
        with session.lookup_secret_by_usage(
            SecretUsageType.VOLUME, VOLUME
        ) as sec:
            assert sec.uuid() == secret.uuid()
        with pytest.raises(NotFoundError) as excinfo:
            session.lookup_secret_by_usage(SecretUsageType.VOLUME, '/nope')
        assert excinfo.value.code is ErrorCode.NO_SECRET

    def test_lookup_invalid(self, session):
        """Test malformed lookup arguments."""
        with pytest.raises(InvalidArgumentError):
            session.lookup_secret_by_usage(1000, VOLUME)
        with pytest.raises(InvalidArgumentError):
            session.lookup_secret_by_usage(SecretUsageType.VOLUME, '')
        with pytest.raises(InvalidArgumentError):
            session.lookup_secret_by_uuid('xyz')

    def test_redefine(self, session, secret, secret_xml, hypervisor):
        """Test defining secret with same UUID modifies it."""
        session.define_secret(secret_xml(VOLUME, secret.uuid())).free()
        assert len(hypervisor.secrets) == 1

    def test_usage_conflict(self, session, secret, secret_xml):
        """Test one secret per volume."""
        with pytest.raises(NativeFailureError) as excinfo:
            session.define_secret(secret_xml(VOLUME))
        assert excinfo.value.code is ErrorCode.INTERNAL_ERROR

    def test_list(self, session, secret, secret_xml):
        """Test listing with private filter."""
        session.define_secret(secret_xml('/srv/v2', private=True)).free()
        assert len(session.list_secrets()) == 2
        private = session.list_secrets(SecretListFlag.PRIVATE)
        assert [s.usage_id() for s in private] == ['/srv/v2']
        for sec in private:
            sec.free()

    def test_read_only(self, readonly_session, secret_xml, hypervisor):
        """Test read-only session cannot define secrets."""
        with pytest.raises(OperationDeniedError):
            readonly_session.define_secret(secret_xml())
        assert hypervisor.secrets == {}


class TestValue:
    """Secret value."""

    def test_no_value(self, secret):
        """Test reading value which was never set."""
        with pytest.raises(NotFoundError) as excinfo:
            secret.value()
        assert excinfo.value.code is ErrorCode.NO_SECRET

    def test_bytes(self, secret):
        """Test binary value."""
        secret.set_value(b'\x00\xffkey')
        assert secret.value() == b'\x00\xffkey'

    def test_str(self, secret):
        """Test string value is stored as UTF-8."""
        secret.set_value('pässword')
        assert secret.value() == 'pässword'.encode()

    @pytest.mark.parametrize('value', [None, 123, ['a']])
    def test_invalid(self, secret, hypervisor, value):
        """Test values of wrong type never reach hypervisor."""
        with pytest.raises(InvalidArgumentError):
            secret.set_value(value)
        assert hypervisor.secrets[secret.uuid()].value is None

    def test_value_not_logged(self, secret, caplog):
        """Test secret material never appears in logs."""
        caplog.set_level('DEBUG', logger='virtsession')
        secret.set_value(b'topsecret')
        secret.value()
        assert 'topsecret' not in caplog.text


class TestUndefine:
    """Secret removal."""

    def test_undefine(self, session, secret):
        """Test undefined secret is gone, handle is kept."""
        uuidstr = secret.uuid()
        secret.undefine()
        with pytest.raises(NotFoundError):
            session.lookup_secret_by_uuid(uuidstr)
        assert secret.refs == 1
        with pytest.raises(NotFoundError):
            secret.xml()

    def test_released(self, secret):
        """Test calls on released secret."""
        secret.free()
        with pytest.raises(InvalidArgumentError) as excinfo:
            secret.value()
        assert excinfo.value.code is ErrorCode.INVALID_SECRET

    def test_undefine_by_uuid_object(self, session, secret):
        """Test lookup accepts UUID object."""
        with session.lookup_secret_by_uuid(uuid.UUID(secret.uuid())) as s:
            s.undefine()
        with pytest.raises(NotFoundError):
            secret.usage_id()
