"""Internal endpoint modules for the fitment service and the storefront catalog."""
