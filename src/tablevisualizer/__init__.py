"""Editable numeric tables with heatmap feedback, 3D surface scaling and percentage revisions."""
