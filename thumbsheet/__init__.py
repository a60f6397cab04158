from thumbsheet.thumbsheet import main, __version__
