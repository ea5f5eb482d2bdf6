__author__ = "Nikita Sakhno"
__license__ = "MIT License"
__version__ = "0.1.0"
