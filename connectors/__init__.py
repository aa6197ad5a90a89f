"""Backend collaborator contracts and their REST implementation."""
