import sys

# Some tests build directory trees deeper than the default recursion limit;
# pytest's tmp_path cleanup (shutil.rmtree) recurses once per level.
sys.setrecursionlimit(max(sys.getrecursionlimit(), 10000))
