"""HTTP front end for the spending tracker."""
