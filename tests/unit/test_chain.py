"""
Unit tests for the chain resolver (chain.py).
"""

from innobackup_runner import chain
from innobackup_runner.utils.datatypes import BackupId


class TestInspect:
    """Test resolving the latest full backup and the chain base."""

    def test_empty_destination(self, destination):
        state = chain.inspect(destination / 'full', destination / 'incr')

        assert state.latest_full is None
        assert state.latest_incremental is None
        assert state.incremental_base is None
        assert state.chain_dir is None

    def test_missing_roots(self, tmp_path):
        state = chain.inspect(tmp_path / 'nope' / 'full', tmp_path / 'nope' / 'incr')
        assert state.latest_full is None

    def test_latest_full_backup(self, destination, make_full):
        make_full(3 * 86400)
        newest = make_full(3600)
        make_full(86400)

        state = chain.inspect(destination / 'full', destination / 'incr')

        assert state.latest_full.path == newest
        assert state.chain_dir == destination / 'incr' / newest.name

    def test_first_incremental_uses_full_backup(self, destination, make_full):
        full = make_full(3600)

        state = chain.inspect(destination / 'full', destination / 'incr')

        assert state.latest_incremental is None
        assert state.incremental_base == full

    def test_chain_continues_from_newest_incremental(self, destination, make_full,
                                                      make_incremental):
        full = make_full(7200)
        make_incremental(full, 3600)
        t3 = make_incremental(full, 600)
        make_incremental(full, 1800)

        state = chain.inspect(destination / 'full', destination / 'incr')

        assert state.latest_incremental.path == t3
        assert state.incremental_base == t3
        assert state.latest_incremental.base_directory.name < t3.name

    def test_incrementals_of_older_chains_are_ignored(self, destination, make_full,
                                                      make_incremental):
        old = make_full(2 * 86400)
        make_incremental(old, 86400)
        new = make_full(3600)

        state = chain.inspect(destination / 'full', destination / 'incr')

        assert state.latest_full.path == new
        assert state.incremental_base == new

    def test_ignores_foreign_entries(self, destination, make_full):
        full = make_full(3600)
        (destination / 'full' / 'lost+found').mkdir()
        (destination / 'full' / '2099-01-01_00-00-00.tar').write_text('not a dir')

        state = chain.inspect(destination / 'full', destination / 'incr')

        assert state.latest_full.path == full


class TestLoadBackupSets:

    def test_all_generations_with_incrementals(self, destination, make_full,
                                               make_incremental):
        old = make_full(2 * 86400)
        make_incremental(old, 86400 + 3600)
        make_incremental(old, 86400 + 1800)
        new = make_full(3600)

        backups = chain.load_backup_sets(destination / 'full', destination / 'incr')

        assert list(backups) == [BackupId.parse(old.name), BackupId.parse(new.name)]
        assert len(backups[BackupId.parse(old.name)].incremental_backups) == 2
        assert backups[BackupId.parse(new.name)].incremental_backups == []

    def test_orphaned_chains(self, destination, make_full, make_incremental):
        full = make_full(3600)
        make_incremental(full, 60)
        orphan = destination / 'incr' / '2020-01-01_00-00-00'
        orphan.mkdir()

        assert chain.orphaned_chains(destination / 'full', destination / 'incr') == [orphan]
