"""FastHTML frontend for the business card manager."""
