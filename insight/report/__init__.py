"""Output formats - JSON/CSV export, PDF reports and charts."""
