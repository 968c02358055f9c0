"""R Markdown render supervisor and rendered-output resource service."""
