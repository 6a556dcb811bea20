"""FastMCP sub-servers, one per tool family."""
