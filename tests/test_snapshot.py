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

"""Tests for domain snapshots."""

import pytest

from virtsession import (
    ErrorCode,
    InvalidArgumentError,
    NotFoundError,
    SnapshotDeleteFlag,
    SnapshotListFlag,
    SnapshotRevertFlag,
)


@pytest.fixture
def tree(domain, snapshot_xml):
    """
    Snapshot tree of three generations.

    Snapshots are taken in order, each one becomes current, so the tree
    is ``root -> child -> grandchild``.
    """
    snaps = [
        domain.create_snapshot(snapshot_xml(name))
        for name in ('root', 'child', 'grandchild')
    ]
    yield snaps
    for snap in snaps:
        while not snap.is_released():
            snap.free()


def names(snapshots):
    result = sorted(s.name() for s in snapshots)
    for snap in snapshots:
        snap.free()
    return result


class TestTree:
    """Snapshot tree navigation."""

    def test_root_has_no_parent(self, tree):
        """Test parent of root snapshot."""
        root = tree[0]
        with pytest.raises(NotFoundError) as excinfo:
            root.parent()
        assert excinfo.value.code is ErrorCode.NO_DOMAIN_SNAPSHOT

    def test_parent(self, tree):
        """Test parent of child snapshot."""
        _, child, grandchild = tree
        with child.parent() as parent:
            assert parent.name() == 'root'
        with grandchild.parent() as parent:
            assert parent.name() == 'child'

    def test_children(self, tree):
        """Test direct children and all descendants."""
        root = tree[0]
        assert names(root.list_children()) == ['child']
        assert names(root.list_children(SnapshotListFlag.DESCENDANTS)) == [
            'child',
            'grandchild',
        ]
        assert names(tree[2].list_children()) == []

    def test_list_snapshots(self, domain, tree):
        """Test listing all and root snapshots of domain."""
        assert names(domain.list_snapshots()) == [
            'child',
            'grandchild',
            'root',
        ]
        assert names(domain.list_snapshots(SnapshotListFlag.ROOTS)) == [
            'root'
        ]

    def test_lookup(self, domain, tree):
        """Test lookup by name."""
        with domain.lookup_snapshot_by_name('child') as snap:
            assert snap.has_metadata()
            assert '<name>child</name>' in snap.xml()
        with pytest.raises(NotFoundError):
            domain.lookup_snapshot_by_name('missing')
        with pytest.raises(InvalidArgumentError):
            domain.lookup_snapshot_by_name('')

    def test_single_child(self, domain, snapshot_xml):
        """Test descendants of parent with one child."""
        with domain.create_snapshot(snapshot_xml('base')) as base:
            with domain.create_snapshot(snapshot_xml('next')):
                children = base.list_children(SnapshotListFlag.DESCENDANTS)
                assert names(children) == ['next']


class TestOperations:
    """Snapshot operations."""

    def test_current(self, tree):
        """Test last taken snapshot is current."""
        root, child, grandchild = tree
        assert grandchild.is_current()
        assert not root.is_current()

    def test_revert(self, domain, tree):
        """Test revert makes snapshot current."""
        root, _, grandchild = tree
        root.revert()
        assert root.is_current()
        assert not grandchild.is_current()
        assert not domain.is_active()

    def test_revert_running(self, domain, tree):
        """Test revert to running state starts domain."""
        tree[1].revert(SnapshotRevertFlag.RUNNING)
        assert domain.is_active()

    def test_delete(self, domain, tree):
        """Test deleted snapshot is gone, children are reparented."""
        root, child, grandchild = tree
        child.delete()
        with pytest.raises(NotFoundError):
            domain.lookup_snapshot_by_name('child')
        with grandchild.parent() as parent:
            assert parent.name() == 'root'
        assert child.refs == 1

    def test_delete_children(self, domain, tree):
        """Test deleting snapshot with its descendants."""
        tree[1].delete(SnapshotDeleteFlag.CHILDREN)
        assert names(domain.list_snapshots()) == ['root']

    def test_create_invalid(self, domain, hypervisor):
        """Test invalid snapshot requests never reach hypervisor."""
        with pytest.raises(InvalidArgumentError):
            domain.create_snapshot('')
        with pytest.raises(InvalidArgumentError):
            domain.create_snapshot('<domainsnapshot/>', 1 << 20)
        assert hypervisor.domains['vm1'].snapshots == {}

    def test_released(self, tree):
        """Test calls on released snapshot."""
        root = tree[0]
        root.free()
        with pytest.raises(InvalidArgumentError) as excinfo:
            root.revert()
        assert excinfo.value.code is ErrorCode.INVALID_DOMAIN_SNAPSHOT

    def test_outlives_domain_handle(self, domain, tree):
        """Test snapshot stays usable after domain handle is freed."""
        domain.free()
        tree[0].revert()
        assert tree[0].is_current()
