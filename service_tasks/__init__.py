"""DayOrg tasks service."""
