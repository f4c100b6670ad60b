"""Sample application scanned by the discovery and facade tests."""
