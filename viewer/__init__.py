"""Browser viewer and editor for tax-form templates backed by the forms API."""
