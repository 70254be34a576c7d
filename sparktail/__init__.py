"""sparktail - stream Spark driver logs from a Mesos cluster."""

__version__ = "0.3.0"
