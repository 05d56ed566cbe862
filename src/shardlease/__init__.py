"""shardlease: leader election for shards over an etcd v2 style store."""

__version__ = "0.1.0"
