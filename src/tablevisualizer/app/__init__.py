"""
The APP layer connects the model to a Qt event loop: signals for views and
the renderer, debounced recomputation, auto-saving.
"""
