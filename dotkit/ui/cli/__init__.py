"""Click sub-command groups and console rendering."""
