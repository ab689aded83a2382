"""Business operations that span more than one repository call."""
