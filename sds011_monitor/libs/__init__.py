"""Protocol libraries bundled with the monitor."""
