"""Terminal front end: argument parsing, prompt loop and fuzzy history picker."""
