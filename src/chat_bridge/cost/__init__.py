"""Cost estimation from reported token usage."""
