"""Front-ends that drive the TaskController."""
