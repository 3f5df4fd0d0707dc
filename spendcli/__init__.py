"""Command-line front end for the spending tracker."""
