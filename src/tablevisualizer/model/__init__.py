"""
The MODEL layer contains pure data structures and business logic.
It has NO knowledge of the GUI (Qt) or the 3D renderer.
It deals with Grids, Text, Colours, Revisions and I/O.
"""
