"""Protocol session, configuration and call routing."""
