"""ucsreport: inventory and best-practice reports for UCS Manager domains."""
