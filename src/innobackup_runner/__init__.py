"""
Full and incremental MySQL backups with innobackupex.
"""
