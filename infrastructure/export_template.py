"""Document skeleton, base styles and the standalone runtime for offline albums.

The runtime mirrors `core.services.navigation.BookNavigator`; its thresholds
arrive through the `CONFIG` object rendered from Python constants.
"""

from __future__ import annotations

from jinja2 import Environment

_jinja_env = Environment(autoescape=True)
Template = _jinja_env.from_string

BASE_CSS = """\
/* offline album base */
*, *::before, *::after { box-sizing: border-box; }
body {
  margin: 0; padding: 0;
  font-family: "Inter", system-ui, -apple-system, sans-serif;
  background: #f0f6fa; color: #2c3e50;
}
.offline-notice {
  background: linear-gradient(135deg, #87ceeb 0%, #b0c4de 100%);
  color: white; text-align: center; padding: 0.5rem; font-size: 0.9rem;
  position: sticky; top: 0; z-index: 1000;
}
.album-header {
  display: flex; align-items: center; justify-content: space-between;
  padding: 1rem 2rem;
}
.album-title { font-size: 1.5rem; margin: 0; }
.page-indicator { font-size: 0.9rem; color: #6b7c93; }
.book-container { display: flex; flex-direction: column; align-items: center; padding: 0 1rem 2rem; }
.book-spread {
  position: relative; display: flex; width: min(1600px, 100%); min-height: 600px;
  background: #ffffe0; border-radius: 8px; box-shadow: 0 5px 15px rgba(0, 0, 0, 0.1);
  overflow: hidden;
}
.book-spine {
  position: absolute; top: 0; left: 50%; width: 1px; height: 100%;
  background: linear-gradient(to bottom, rgba(0,0,0,0.1), rgba(0,0,0,0.2), rgba(0,0,0,0.1));
}
.book-page {
  flex: 1; padding: 2rem; display: flex; flex-direction: column;
  background-image: linear-gradient(rgba(176, 196, 222, 0.1) 1px, transparent 1px);
  background-size: 20px 20px;
}
.index-page { flex: 1; display: flex; align-items: center; justify-content: center; }
.index-title h1 { font-size: 2.2rem; font-weight: 600; text-align: center; }
.page-header { display: flex; justify-content: center; margin-bottom: 1rem; }
.date-header { font-size: 1.2rem; margin: 0; }
.photos-grid {
  display: grid; grid-template-columns: repeat(2, 1fr); gap: 0.5rem;
  justify-items: center; align-items: center; flex: 1;
  transform-origin: top center;
}
.polaroid-frame {
  background: white; padding: 12px; border-radius: 8px;
  box-shadow: 0 4px 15px rgba(135, 206, 235, 0.2);
}
.photo-container { width: 250px; height: 250px; overflow: hidden; cursor: pointer; }
.photo-image { width: 100%; height: 100%; object-fit: cover; display: block; }
.polaroid-caption { margin-top: 10px; min-height: 25px; font-size: 0.85rem; text-align: center; }
.location-text { font-weight: 600; }
.navigation-controls { display: flex; gap: 1rem; margin-top: 1rem; }
.nav-button {
  font-size: 1.4rem; padding: 0.4rem 1.2rem; border: none; border-radius: 6px;
  background: #87ceeb; color: white; cursor: pointer;
}
.nav-button:disabled { opacity: 0.4; cursor: default; }
.photo-modal-overlay {
  position: fixed; inset: 0; background: rgba(0, 0, 0, 0.75);
  display: flex; align-items: center; justify-content: center; z-index: 2000;
}
.photo-modal {
  position: relative; display: flex; max-width: 90vw; max-height: 90vh;
  background: white; border-radius: 8px; overflow: hidden;
}
.modal-close {
  position: absolute; top: 0.5rem; right: 0.75rem; font-size: 1.6rem;
  border: none; background: none; cursor: pointer;
}
.modal-image { max-width: 60vw; max-height: 90vh; object-fit: contain; display: block; }
.modal-sidebar { padding: 2rem 1.5rem; min-width: 260px; overflow-y: auto; }
.detail-group { margin-bottom: 1rem; }
.detail-group label, .metadata .label { font-weight: 600; color: #6b7c93; }
@media (max-width: 767px) {
  .book-spread { min-height: 0; }
  .photo-container { width: 140px; height: 140px; }
  .photo-modal { flex-direction: column; }
  .modal-image { max-width: 90vw; max-height: 55vh; }
}
"""

RUNTIME_JS = """\
(function () {
  var currentPageIndex = 0;
  var isMobile = window.innerWidth < CONFIG.mobileBreakpoint;
  var selectedPhoto = null;
  var touchStartX = null;

  function escapeHtml(value) {
    return String(value == null ? '' : value)
      .replace(/&/g, '&amp;').replace(/</g, '&lt;').replace(/>/g, '&gt;')
      .replace(/"/g, '&quot;').replace(/'/g, '&#39;');
  }

  function pageStep() {
    return isMobile ? 1 : CONFIG.pagesPerSpread;
  }

  function formatFileSize(bytes) {
    if (!bytes) return '0 B';
    var sizes = ['B', 'KB', 'MB', 'GB'];
    var i = Math.min(Math.floor(Math.log(bytes) / Math.log(1024)), sizes.length - 1);
    return parseFloat((bytes / Math.pow(1024, i)).toFixed(2)) + ' ' + sizes[i];
  }

  function goToPage(index) {
    if (index >= 0 && index < albumData.pages.length) {
      currentPageIndex = index;
      render();
    }
  }

  function nextPage() { goToPage(currentPageIndex + pageStep()); }
  function prevPage() { goToPage(currentPageIndex - pageStep()); }

  function openPhotoModal(pageIndex, photoIndex) {
    var page = albumData.pages[pageIndex];
    if (!page || !page.photos[photoIndex]) return;
    selectedPhoto = page.photos[photoIndex];
    renderModal();
  }

  function closePhotoModal() {
    selectedPhoto = null;
    var modal = document.getElementById('photo-modal');
    if (modal) modal.remove();
  }

  function renderModal() {
    var existing = document.getElementById('photo-modal');
    if (existing) existing.remove();
    if (!selectedPhoto) return;
    var p = selectedPhoto;
    var captured = p.capturedAt ? new Date(p.capturedAt).toLocaleString() : 'Unknown';
    var exif = p.exifData || {};
    var modal = document.createElement('div');
    modal.id = 'photo-modal';
    modal.className = 'photo-modal-overlay';
    modal.addEventListener('click', function (e) {
      if (e.target === modal) closePhotoModal();
    });
    modal.innerHTML =
      '<div class="photo-modal">' +
        '<button class="modal-close" data-action="close">&times;</button>' +
        '<div class="modal-image-container"><img class="modal-image" src="' + escapeHtml(p.dataUrl) +
          '" alt="' + escapeHtml(p.name) + '"></div>' +
        '<div class="modal-sidebar">' +
          '<h2 class="photo-title">' + escapeHtml(p.name) + '</h2>' +
          '<div class="detail-group"><label>Location</label><div>' +
            escapeHtml(p.location || 'No location available') + '</div></div>' +
          '<div class="detail-group"><label>Description</label><div>' +
            escapeHtml(p.description || 'No description available') + '</div></div>' +
          '<div class="metadata">' +
            '<div><span class="label">Captured:</span> ' + escapeHtml(captured) + '</div>' +
            '<div><span class="label">File Size:</span> ' + escapeHtml(formatFileSize(p.fileSize)) + '</div>' +
            (exif.camera ? '<div><span class="label">Camera:</span> ' + escapeHtml(exif.camera) + '</div>' : '') +
            (exif.lens ? '<div><span class="label">Lens:</span> ' + escapeHtml(exif.lens) + '</div>' : '') +
            (exif.settings ? '<div><span class="label">Settings:</span> ' + escapeHtml(exif.settings) + '</div>' : '') +
            (p.isFavorite ? '<div><span class="label">Status:</span> &#11088; Favorite</div>' : '') +
          '</div>' +
        '</div>' +
      '</div>';
    modal.querySelector('[data-action="close"]').addEventListener('click', closePhotoModal);
    document.body.appendChild(modal);
  }

  function renderPage(page, pageIndex, position) {
    if (!page) return '';
    var cls = 'book-page ' + (position === 'single' ? 'single-page' : position + '-page');
    if (page.isIndexPage) {
      return '<div class="' + cls + '"><div class="index-page"><div class="index-title"><h1>' +
        escapeHtml(page.dateHeader) + '</h1></div></div></div>';
    }
    var header = '';
    if (page.kind === CONFIG.favoritesKind) {
      header = '<div class="page-header"><h2 class="date-header">My Favorite Photos</h2></div>';
    } else if (page.dateHeader) {
      header = '<div class="page-header"><h2 class="date-header">' + escapeHtml(page.dateHeader) +
        '</h2><div class="page-number">' + page.pageNumber + '</div></div>';
    }
    var photos = page.photos.map(function (photo, photoIndex) {
      var caption = '';
      if (photo.location) caption += '<div class="location-text">' + escapeHtml(photo.location) + '</div>';
      if (photo.description) caption += '<div class="description-text">' + escapeHtml(photo.description) + '</div>';
      return '<div class="polaroid-photo medium" style="transform: rotate(' + (Number(photo.rotation) || 0) + 'deg);">' +
        '<div class="polaroid-frame">' +
          '<div class="photo-container" data-page="' + pageIndex + '" data-photo="' + photoIndex + '">' +
            '<img class="photo-image" src="' + escapeHtml(photo.dataUrl) + '" alt="' + escapeHtml(photo.name) + '">' +
          '</div>' +
          '<div class="polaroid-caption"><div class="caption-content">' + caption + '</div></div>' +
        '</div></div>';
    }).join('');
    return '<div class="' + cls + '">' + header + '<div class="photos-grid masonry-grid">' + photos + '</div></div>';
  }

  function fitGrids() {
    var grids = document.querySelectorAll('.photos-grid');
    Array.prototype.forEach.call(grids, function (grid) {
      var container = grid.closest('.book-page');
      grid.style.transform = '';
      grid.style.gap = '';
      if (!container) return;
      var available = container.clientHeight - CONFIG.headerAllowance;
      var natural = grid.scrollHeight;
      if (available <= 0 || natural <= available * CONFIG.overflowTolerance) {
        grid.style.gap = CONFIG.baseGap + 'px';
        return;
      }
      var scale = Math.max(CONFIG.minScale, (available * CONFIG.fitRatio) / natural);
      grid.style.transform = 'scale(' + scale + ')';
      grid.style.gap = Math.max(CONFIG.minGap, CONFIG.baseGap * scale) + 'px';
    });
  }

  function render() {
    var container = document.getElementById('album-container');
    var total = albumData.pages.length;
    if (!total) {
      container.innerHTML = '<p class="empty-album">This album has no photos.</p>';
      return;
    }
    var left = albumData.pages[currentPageIndex];
    var right = isMobile ? null : albumData.pages[currentPageIndex + 1];
    var indicator = isMobile
      ? 'Page ' + (currentPageIndex + 1) + ' of ' + total
      : 'Page ' + (currentPageIndex + 1) + '-' + Math.min(currentPageIndex + CONFIG.pagesPerSpread, total) + ' of ' + total;
    container.innerHTML =
      '<div class="album-book">' +
        '<header class="album-header"><h1 class="album-title">' + escapeHtml(albumData.albumName) + '</h1>' +
        '<div class="page-indicator">' + indicator + '</div></header>' +
        '<div class="book-container">' +
          '<div class="book-spread' + (isMobile ? ' mobile-view' : '') + '">' +
            (isMobile ? '' : '<div class="book-spine"></div>') +
            renderPage(left, currentPageIndex, isMobile ? 'single' : 'left') +
            (right ? renderPage(right, currentPageIndex + 1, 'right') : '') +
          '</div>' +
          '<div class="navigation-controls">' +
            '<button class="nav-button prev" data-action="prev"' + (currentPageIndex === 0 ? ' disabled' : '') + '>&larr;</button>' +
            '<button class="nav-button next" data-action="next"' + (currentPageIndex >= total - pageStep() ? ' disabled' : '') + '>&rarr;</button>' +
          '</div>' +
        '</div>' +
      '</div>';
    window.setTimeout(fitGrids, 50);
  }

  document.addEventListener('click', function (e) {
    var target = e.target.closest ? e.target.closest('[data-action], .photo-container') : null;
    if (!target) return;
    if (target.getAttribute('data-action') === 'prev') prevPage();
    else if (target.getAttribute('data-action') === 'next') nextPage();
    else if (target.classList.contains('photo-container')) {
      openPhotoModal(Number(target.getAttribute('data-page')), Number(target.getAttribute('data-photo')));
    }
  });

  document.addEventListener('keydown', function (e) {
    if (e.key === 'Escape') {
      if (selectedPhoto) closePhotoModal();
      return;
    }
    if (selectedPhoto) return;
    if (e.key === 'ArrowLeft') prevPage();
    if (e.key === 'ArrowRight') nextPage();
  });

  document.addEventListener('touchstart', function (e) {
    touchStartX = e.touches[0].clientX;
  });

  document.addEventListener('touchend', function (e) {
    if (touchStartX === null) return;
    var diff = touchStartX - e.changedTouches[0].clientX;
    touchStartX = null;
    if (selectedPhoto || Math.abs(diff) <= CONFIG.swipeThreshold) return;
    if (diff > 0) nextPage();
    else prevPage();
  });

  window.addEventListener('resize', function () {
    var mobile = window.innerWidth < CONFIG.mobileBreakpoint;
    if (mobile !== isMobile) {
      isMobile = mobile;
      render();
    } else {
      fitGrids();
    }
  });

  render();
})();
"""

DOCUMENT_TEMPLATE = Template("""\
<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>{{ title }} - Photo Album</title>
<style>
{{ base_css }}
{{ collected_css }}
</style>
</head>
<body>
<div class="offline-notice">Offline Photo Album: {{ title }} | Use arrow keys, swipe or the navigation buttons to browse</div>
<div id="album-container"></div>
<script>
var CONFIG = {{ runtime_config|tojson }};
var albumData = {{ album_data|tojson }};
</script>
<script>
{{ runtime_js }}
</script>
</body>
</html>
""")
