"""Domain layer: interfaces, value objects and events shared by every decorator."""
