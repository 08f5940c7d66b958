"""Ports - contracts between the replication engine and the outside world."""
